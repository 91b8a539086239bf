"""
Herald FastAPI Application State

Centralized state management with type safety and runtime validation.
"""

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, model_validator

from core.service.alert_rule_service import AlertRuleService
from core.service.alert_service import AlertService
from core.task.rule_monitor_task import AlertRuleMonitor
from core.util.factory.monitoring_factory import HeraldComponents


class HeraldAppState(BaseModel):
    """
    Herald application state container.

    - Unified mode (main_service.py):
      Components are built by the service entry point and injected here;
      it also owns their shutdown.

    - Standalone mode (uvicorn api.app:app):
      Components are built by lifecycle.py and closed on shutdown.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True, extra="forbid")

    components: InstanceOf[HeraldComponents] | None = Field(default=None, description="Wired alerting pipeline")

    # Deployment mode flag
    unified_mode: bool = Field(default=False, description="True if running in unified mode (monitor + API)")

    @model_validator(mode="after")
    def validate_unified_mode_requirements(self) -> "HeraldAppState":
        if self.unified_mode and self.components is None:
            raise ValueError("components are required in unified mode")
        return self

    def is_unified_mode(self) -> bool:
        return self.unified_mode and self.components is not None

    def get_components(self) -> HeraldComponents:
        if self.components is None:
            raise RuntimeError("Herald components not initialized")
        return self.components

    def get_alert_service(self) -> AlertService:
        return self.get_components().alert_service

    def get_alert_rule_service(self) -> AlertRuleService:
        return self.get_components().alert_rule_service

    def get_monitor(self) -> AlertRuleMonitor:
        return self.get_components().monitor

    def __repr__(self) -> str:
        mode = "unified" if self.is_unified_mode() else "standalone"
        if self.components is None:
            return f"HeraldAppState(mode={mode}, components=NO)"
        monitor = self.components.monitor
        return f"HeraldAppState(mode={mode}, store={type(self.components.store).__name__}, monitor={monitor.state})"
