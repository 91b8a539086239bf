"""
Alert Rules Router
"""

from fastapi import APIRouter, Depends, Query

from api.dependency import get_alert_rule_service
from api.model.enums import ResponseStatus
from api.model.requests import AlertRuleRequest
from api.model.responses import AlertRuleListResponse, AlertRuleResponse, BaseResponse
from core.service.alert_rule_service import AlertRuleService

router = APIRouter()


@router.get("", response_model=AlertRuleListResponse, summary="List alert rules (newest first)")
async def list_rules(
    enabled: bool | None = Query(None),
    limit: int | None = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: AlertRuleService = Depends(get_alert_rule_service),
):
    rules, total = await service.list_rules(enabled=enabled, limit=limit, offset=offset)
    return AlertRuleListResponse(status=ResponseStatus.SUCCESS, rules=rules, total=total)


@router.post("", response_model=AlertRuleResponse, status_code=201, summary="Create an alert rule")
async def create_rule(request: AlertRuleRequest, service: AlertRuleService = Depends(get_alert_rule_service)):
    rule = await service.create_rule(request.changes())
    return AlertRuleResponse(status=ResponseStatus.SUCCESS, rule=rule)


@router.get("/{rule_id}", response_model=AlertRuleResponse, summary="Get one alert rule")
async def get_rule(rule_id: str, service: AlertRuleService = Depends(get_alert_rule_service)):
    rule = await service.get_rule(rule_id)
    return AlertRuleResponse(status=ResponseStatus.SUCCESS, rule=rule)


@router.put("/{rule_id}", response_model=AlertRuleResponse, summary="Update an alert rule")
async def update_rule(
    rule_id: str, request: AlertRuleRequest, service: AlertRuleService = Depends(get_alert_rule_service)
):
    rule = await service.update_rule(rule_id, request.changes())
    return AlertRuleResponse(status=ResponseStatus.SUCCESS, rule=rule)


@router.delete("/{rule_id}", response_model=BaseResponse, summary="Delete an alert rule and retire its state")
async def delete_rule(rule_id: str, service: AlertRuleService = Depends(get_alert_rule_service)):
    await service.delete_rule(rule_id)
    return BaseResponse(status=ResponseStatus.SUCCESS, message=f"Alert rule {rule_id} deleted")
