"""
Herald Unified Service Entry Point

Runs the alert rule monitoring loop and the API server in a single process.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from core.util.config_manager import ConfigManager
from core.util.factory.monitoring_factory import HeraldComponents, build_herald
from core.util.factory.notifier_factory import load_notifier_config
from core.util.logger_config import configure_logging

sys.path.insert(0, str(Path(__file__).parent))

from api.app import create_application

logger = logging.getLogger(__name__)


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Herald Unified Service (Monitor + API)")

    parser.add_argument("--system_config", default="res/system_config.yml", help="System configuration file")
    parser.add_argument("--notifier_config", default="res/notifier_config.yml", help="Notifier configuration file")
    parser.add_argument("--api-host", default="0.0.0.0", help="API server host")
    parser.add_argument("--api-port", type=int, default=8000, help="API server port")
    parser.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Overrides LOGGING.LEVEL"
    )

    return parser.parse_args()


async def main():
    """Main entry point for unified service."""
    args = parse_arguments()

    load_dotenv()

    logger.info("=" * 80)
    logger.info("HERALD UNIFIED SERVICE")
    logger.info("Alert Rule Monitor + API Server")
    logger.info("=" * 80)

    components: HeraldComponents | None = None

    try:
        # ========== Load Configuration ==========
        system_config = ConfigManager.load_system_config(args.system_config)
        configure_logging(system_config, level=args.log_level)

        notifier_config = load_notifier_config(args.notifier_config)

        logger.info("Configuration Files:")
        logger.info(f"  System Config:    {args.system_config}")
        logger.info(f"  Notifier Config:  {args.notifier_config}")
        logger.info(f"  Store:            {system_config.STORE.BACKEND}")
        logger.info(f"  Monitor interval: {system_config.MONITOR_INTERVAL_SECONDS}s")
        logger.info(f"  Metric window:    {system_config.MONITOR_WINDOW_SECONDS}s")
        logger.info("=" * 80)

        # ========== Build Pipeline ==========
        components = await build_herald(system_config, notifier_config)
        logger.info("Alerting pipeline built")

        # ========== Initialize API ==========
        app = create_application()
        app.state.herald.components = components
        app.state.herald.unified_mode = True
        logger.info(f"Shared instances injected: {app.state.herald!r}")

        config = uvicorn.Config(
            app,
            host=args.api_host,
            port=args.api_port,
            log_level=(args.log_level or system_config.LOGGING.LEVEL).lower(),
            access_log=False,
        )
        server = uvicorn.Server(config)
        logger.info(f"API server configured (http://{args.api_host}:{args.api_port})")

        # ========== Start Background Jobs ==========
        components.sweep_task.start()
        if system_config.MONITOR_AUTOSTART:
            components.monitor.start()
        else:
            logger.info("[MONITOR] Autostart disabled; start it via POST /api/monitoring/start")

        logger.info("=" * 80)
        logger.info("HERALD UNIFIED SERVICE RUNNING")
        logger.info(f"API: http://localhost:{args.api_port}/docs")
        logger.info("Press Ctrl+C to stop")
        logger.info("=" * 80)

        await server.serve()

    except KeyboardInterrupt:
        logger.info("SHUTDOWN SIGNAL RECEIVED")

    except Exception as e:
        logger.error("=" * 80)
        logger.error("FATAL ERROR")
        logger.error("=" * 80)
        logger.error(f"Error: {e}", exc_info=True)
        raise

    finally:
        logger.info("=" * 80)
        logger.info("SHUTTING DOWN")
        logger.info("=" * 80)

        if components:
            try:
                await components.close()
                logger.info("Monitor, sweep task and store closed")
            except Exception as e:
                logger.error(f"Error during cleanup: {e}")

        logger.info("SHUTDOWN COMPLETE")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.error(f"Failed to start: {e}", exc_info=True)
        sys.exit(1)
