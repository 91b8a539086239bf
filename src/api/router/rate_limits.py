"""
Rate Limits Router

Usage inspection is open; the raw entry dump and resets require the X-Admin-Key header.
"""

from fastapi import APIRouter, Depends, Query

from api.auth import verify_admin_key
from api.dependency import get_alert_service
from api.model.enums import ResponseStatus
from api.model.requests import ResetRateLimitRequest
from api.model.responses import BaseResponse, RateLimitEntriesResponse, RateLimitStatsResponse
from core.service.alert_service import AlertService

router = APIRouter()


@router.get("", response_model=RateLimitStatsResponse, summary="Rate limit usage")
async def get_rate_limits(
    recipient: str | None = Query(None, description="Include per-recipient tiers for this address"),
    service: AlertService = Depends(get_alert_service),
):
    return RateLimitStatsResponse(status=ResponseStatus.SUCCESS, stats=service.get_rate_limit_stats(recipient))


@router.get("/entries", response_model=RateLimitEntriesResponse, summary="Dump every limiter entry (admin)")
async def get_rate_limit_entries(
    _: None = Depends(verify_admin_key),
    service: AlertService = Depends(get_alert_service),
):
    return RateLimitEntriesResponse(status=ResponseStatus.SUCCESS, entries=service.get_rate_limit_entries())


@router.post("/reset", response_model=BaseResponse, summary="Reset limits for one recipient")
async def reset_recipient(
    request: ResetRateLimitRequest,
    _: None = Depends(verify_admin_key),
    service: AlertService = Depends(get_alert_service),
):
    service.reset_rate_limit(request.recipient)
    return BaseResponse(status=ResponseStatus.SUCCESS, message=f"Rate limits reset for {request.recipient}")


@router.post("/reset-system", response_model=BaseResponse, summary="Reset the system-wide limit")
async def reset_system(_: None = Depends(verify_admin_key), service: AlertService = Depends(get_alert_service)):
    service.reset_system_rate_limit()
    return BaseResponse(status=ResponseStatus.SUCCESS, message="System-wide rate limit reset")


@router.post("/clear", response_model=BaseResponse, summary="Drop every limiter entry in every tier")
async def clear_all(_: None = Depends(verify_admin_key), service: AlertService = Depends(get_alert_service)):
    service.clear_rate_limits()
    return BaseResponse(status=ResponseStatus.SUCCESS, message="All rate limit entries cleared")
