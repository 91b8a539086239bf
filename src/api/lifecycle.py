"""Startup and shutdown hooks for the FastAPI application."""

import logging
import os
from pathlib import Path

from fastapi import FastAPI

from core.util.config_manager import ConfigManager
from core.util.factory.monitoring_factory import build_herald
from core.util.factory.notifier_factory import load_notifier_config

logger = logging.getLogger(__name__)


async def startup_event(app: FastAPI) -> None:
    """Initialize API service; builds the pipeline itself only in standalone mode."""
    logger.info("=" * 60)
    logger.info("Starting Herald API Service...")
    logger.info("=" * 60)

    try:
        if app.state.herald.is_unified_mode():
            logger.info("UNIFIED MODE DETECTED")
            logger.info(f"State: {app.state.herald}")
            logger.info("API startup completed (UNIFIED MODE)")
            logger.info("=" * 60)
            return

        # ========== Standalone Mode ==========
        logger.info("STANDALONE MODE")
        logger.info("Initializing independent instances")

        base_res_path = Path(__file__).parent.parent.parent / "res"
        system_config_path = Path(os.getenv("HERALD_SYSTEM_CONFIG", base_res_path / "system_config.yml"))
        notifier_config_path = Path(os.getenv("HERALD_NOTIFIER_CONFIG", base_res_path / "notifier_config.yml"))

        logger.info(f"System config: {system_config_path}")
        logger.info(f"Notifier config: {notifier_config_path}")

        system_config = ConfigManager.load_system_config(str(system_config_path))
        notifier_config = load_notifier_config(str(notifier_config_path))

        components = await build_herald(system_config, notifier_config)
        app.state.herald.components = components

        components.sweep_task.start()
        if system_config.MONITOR_AUTOSTART:
            components.monitor.start()

        logger.info(f"State: {app.state.herald}")
        logger.info("=" * 60)
        logger.info("API startup completed (STANDALONE MODE)")
        logger.info("=" * 60)

    except Exception as exc:
        logger.error("=" * 60)
        logger.error("STARTUP FAILED")
        logger.error("=" * 60)
        logger.error(f"Error: {exc}", exc_info=True)
        raise


async def shutdown_event(app: FastAPI) -> None:
    """Clean up resources before shutdown."""
    logger.info("=" * 60)
    logger.info("Shutting down Herald API Service...")
    logger.info("=" * 60)

    if app.state.herald.is_unified_mode():
        logger.info("UNIFIED MODE: Cleanup handled by main_service.py")
        return

    components = app.state.herald.components
    if components:
        try:
            await components.close()
            logger.info("Components shutdown completed")
        except Exception as exc:
            logger.error(f"Error during shutdown: {exc}")
        app.state.herald.components = None

    logger.info("=" * 60)
    logger.info("Shutdown completed")
    logger.info("=" * 60)
