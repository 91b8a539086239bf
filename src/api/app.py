"""
FastAPI Application Entry Point
Responsibilities:
- Create FastAPI instance
- Register routes
- Configure middleware
- Hold the shared HeraldAppState
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

from api.app_state import HeraldAppState
from api.lifecycle import shutdown_event, startup_event
from api.middleware.error_handler import add_error_handlers
from api.middleware.logging_middleware import LoggingMiddleware
from api.router import alert_rules, alerts, health, monitoring, rate_limits
from core.schema.system_config_schema import LoggingConfig, SystemConfig
from core.util.logger_config import configure_logging

logger = logging.getLogger("HeraldAPI")

# Console only until a service runner reconfigures from its system config
configure_logging(SystemConfig(LOGGING=LoggingConfig(TO_FILE=False)))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    await startup_event(app)
    try:
        yield
    finally:
        await shutdown_event(app)


def create_application() -> FastAPI:
    """
    Create and configure a FastAPI application

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Herald Alerting API",
        description="Alert rules, alert lifecycle, email notifications and rate limits",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.herald = HeraldAppState()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    add_error_handlers(app)

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])
    app.include_router(alert_rules.router, prefix="/api/alert-rules", tags=["Alert Rules"])
    app.include_router(rate_limits.router, prefix="/api/rate-limits", tags=["Rate Limits"])
    app.include_router(monitoring.router, prefix="/api/monitoring", tags=["Monitoring"])

    return app


app = create_application()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
