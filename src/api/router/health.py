"""
Health Check Router

Provides system health monitoring endpoints.
"""

import platform
from datetime import datetime

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check if the API service is running normally")
async def health_check(request: Request):
    """
    System health check.

    Returns:
        dict: Service status plus monitoring loop state when the pipeline is wired.
    """
    herald = request.app.state.herald
    components = herald.components

    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "Herald Alerting API",
        "version": "1.0.0",
        "mode": "unified" if herald.is_unified_mode() else "standalone",
        "monitor": str(components.monitor.state) if components else None,
        "python_version": platform.python_version(),
    }
