"""
Monitoring Router

Inspect and control the alert rule monitoring loop.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependency import get_monitor
from api.model.enums import ResponseStatus
from api.model.responses import BaseResponse, MonitorStatsResponse, RuleStateResponse, RuleStatesResponse
from core.task.rule_monitor_task import AlertRuleMonitor

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/stats", response_model=MonitorStatsResponse, summary="Monitoring loop statistics")
async def get_stats(monitor: AlertRuleMonitor = Depends(get_monitor)):
    stats = await monitor.get_stats()
    return MonitorStatsResponse(status=ResponseStatus.SUCCESS, **stats)


@router.get("/rule-states", response_model=RuleStatesResponse, summary="Per-rule evaluation state")
async def get_rule_states(monitor: AlertRuleMonitor = Depends(get_monitor)):
    states = await monitor.get_rule_states()
    return RuleStatesResponse(status=ResponseStatus.SUCCESS, states=states)


@router.post("/start", response_model=BaseResponse, summary="Start the monitoring loop")
async def start_monitor(monitor: AlertRuleMonitor = Depends(get_monitor)):
    if monitor.is_running:
        return BaseResponse(status=ResponseStatus.SUCCESS, message="Monitoring already running")
    if monitor.is_stopping:
        raise HTTPException(status_code=409, detail="Monitoring loop is still stopping, retry shortly")
    monitor.start()
    logger.info("[MONITOR] Started via API")
    return BaseResponse(status=ResponseStatus.SUCCESS, message="Monitoring started")


@router.post("/stop", response_model=BaseResponse, summary="Stop the monitoring loop")
async def stop_monitor(monitor: AlertRuleMonitor = Depends(get_monitor)):
    if not monitor.is_running and not monitor.is_stopping:
        return BaseResponse(status=ResponseStatus.SUCCESS, message="Monitoring already stopped")
    await monitor.stop()
    logger.info("[MONITOR] Stopped via API")
    return BaseResponse(status=ResponseStatus.SUCCESS, message="Monitoring stopped")


@router.post("/run-cycle", response_model=BaseResponse, summary="Run one evaluation cycle now")
async def run_cycle(monitor: AlertRuleMonitor = Depends(get_monitor)):
    if monitor.evaluator is None:
        raise HTTPException(status_code=409, detail="Monitoring loop is not running")
    result = await monitor.run_cycle()
    message = f"Cycle skipped: {result.skipped}" if result.skipped else "Cycle completed"
    return BaseResponse(status=ResponseStatus.SUCCESS, message=message)


@router.post("/rule-states/{rule_id}/reset", response_model=RuleStateResponse, summary="Reset one rule's state")
async def reset_rule_state(rule_id: str, monitor: AlertRuleMonitor = Depends(get_monitor)):
    state = await monitor.reset_rule_state(rule_id)
    return RuleStateResponse(status=ResponseStatus.SUCCESS, message=f"State reset for {rule_id}", state=state)
