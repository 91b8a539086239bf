"""
Alerts Router

Alert lifecycle, email delivery logs, test emails and the push-style trigger.
"""

import logging

from fastapi import APIRouter, Depends, Query

from api.dependency import get_alert_rule_service, get_alert_service
from api.model.enums import AlertAction, ResponseStatus
from api.model.requests import (
    AcknowledgeAlertRequest,
    AlertActionRequest,
    CreateAlertRequest,
    TestEmailRequest,
    TriggerRequest,
)
from api.model.responses import (
    AlertListResponse,
    AlertResponse,
    BaseResponse,
    EmailLogListResponse,
    EmailLogResponse,
    Pagination,
    TriggerResponse,
)
from core.model.enum.alert_enum import EmailStatus
from core.service.alert_rule_service import AlertRuleService
from core.service.alert_service import MAX_PAGE_SIZE, AlertService
from exception import InputValidationError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=AlertListResponse, summary="List alerts (newest first)")
async def list_alerts(
    search: str | None = Query(None, description="Substring match on title, message and source"),
    severity: str | None = Query(None),
    status: str | None = Query(None),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    service: AlertService = Depends(get_alert_service),
):
    alerts, total = await service.get_alerts(
        search=search, severity=severity, status=status, limit=limit, offset=offset
    )
    return AlertListResponse(
        status=ResponseStatus.SUCCESS,
        alerts=alerts,
        pagination=Pagination(total=total, limit=limit, offset=offset),
    )


@router.post("", response_model=AlertResponse, status_code=201, summary="Create an alert")
async def create_alert(request: CreateAlertRequest, service: AlertService = Depends(get_alert_service)):
    alert = await service.create_alert(
        title=request.title,
        message=request.message,
        severity=request.severity,
        source=request.source,
        metadata=request.metadata,
        send_email=request.send_email,
        recipients=request.recipients,
    )
    return AlertResponse(status=ResponseStatus.SUCCESS, alert=alert)


# Static paths are declared before /{alert_id}


@router.get("/email-logs", response_model=EmailLogListResponse, summary="List email delivery logs")
async def list_email_logs(
    alert_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    service: AlertService = Depends(get_alert_service),
):
    logs, total = await service.get_email_logs(alert_id=alert_id, limit=limit, offset=offset)
    return EmailLogListResponse(
        status=ResponseStatus.SUCCESS,
        logs=logs,
        pagination=Pagination(total=total, limit=limit, offset=offset),
    )


@router.post("/test-email", response_model=EmailLogResponse, summary="Send a test email")
async def send_test_email(request: TestEmailRequest, service: AlertService = Depends(get_alert_service)):
    log = await service.send_test_email(request.recipient)
    sent = log.status == EmailStatus.SENT
    return EmailLogResponse(
        status=ResponseStatus.SUCCESS if sent else ResponseStatus.FAILED,
        message=None if sent else log.error_message,
        log=log,
    )


@router.post("/trigger", response_model=TriggerResponse, summary="Evaluate a pushed metric value")
async def trigger_alerts(request: TriggerRequest, service: AlertRuleService = Depends(get_alert_rule_service)):
    result = await service.trigger(request.metric, request.value, source=request.source)
    return TriggerResponse(
        status=ResponseStatus.SUCCESS,
        message=f"Processed {result.rules_evaluated} rules, triggered {result.alerts_triggered} alerts",
        metric=result.metric,
        value=result.value,
        rules_evaluated=result.rules_evaluated,
        alerts_triggered=result.alerts_triggered,
        emails_sent=result.emails_sent,
        triggered_alerts=result.triggered_alerts,
    )


@router.get("/{alert_id}", response_model=AlertResponse, summary="Get one alert")
async def get_alert(alert_id: str, service: AlertService = Depends(get_alert_service)):
    alert = await service.get_alert(alert_id)
    return AlertResponse(status=ResponseStatus.SUCCESS, alert=alert)


@router.put("/{alert_id}", response_model=AlertResponse, summary="Acknowledge or resolve an alert")
async def update_alert(
    alert_id: str, request: AlertActionRequest, service: AlertService = Depends(get_alert_service)
):
    match request.action:
        case AlertAction.ACKNOWLEDGE:
            if not request.acknowledged_by:
                raise InputValidationError(
                    "acknowledgedBy is required for acknowledge action", field="acknowledged_by"
                )
            alert = await service.acknowledge_alert(alert_id, request.acknowledged_by)
        case AlertAction.RESOLVE:
            alert = await service.resolve_alert(alert_id)

    return AlertResponse(status=ResponseStatus.SUCCESS, message=f"Alert {request.action}d", alert=alert)


@router.post("/{alert_id}/acknowledge", response_model=AlertResponse, summary="Acknowledge an alert")
async def acknowledge_alert(
    alert_id: str,
    request: AcknowledgeAlertRequest | None = None,
    service: AlertService = Depends(get_alert_service),
):
    acknowledged_by = request.acknowledged_by if request else "admin"
    alert = await service.acknowledge_alert(alert_id, acknowledged_by)
    return AlertResponse(status=ResponseStatus.SUCCESS, message="Alert acknowledged", alert=alert)


@router.post("/{alert_id}/resolve", response_model=AlertResponse, summary="Resolve an alert")
async def resolve_alert(alert_id: str, service: AlertService = Depends(get_alert_service)):
    alert = await service.resolve_alert(alert_id)
    return AlertResponse(status=ResponseStatus.SUCCESS, message="Alert resolved", alert=alert)


@router.delete("/{alert_id}", response_model=BaseResponse, summary="Delete an alert")
async def delete_alert(alert_id: str, service: AlertService = Depends(get_alert_service)):
    await service.delete_alert(alert_id)
    return BaseResponse(status=ResponseStatus.SUCCESS, message=f"Alert {alert_id} deleted")
