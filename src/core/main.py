import argparse
import asyncio
import logging

from dotenv import load_dotenv

from core.util.config_manager import ConfigManager
from core.util.factory.monitoring_factory import HeraldComponents, build_herald
from core.util.factory.notifier_factory import load_notifier_config
from core.util.logger_config import configure_logging

logger = logging.getLogger("CoreMain")


async def main(system_config_path: str, notifier_config_path: str, log_level: str | None = None):
    load_dotenv()

    # ----------------------------------------------------------------------
    # Load configs
    # ----------------------------------------------------------------------
    system_config = ConfigManager.load_system_config(system_config_path)
    configure_logging(system_config, level=log_level)

    notifier_config = load_notifier_config(notifier_config_path)

    logger.info(f"Monitor interval: {system_config.MONITOR_INTERVAL_SECONDS}s")
    logger.info(f"Metric window: {system_config.MONITOR_WINDOW_SECONDS}s")
    logger.info(f"Store backend: {system_config.STORE.BACKEND}")

    # ----------------------------------------------------------------------
    # Build pipeline
    # ----------------------------------------------------------------------
    components: HeraldComponents = await build_herald(system_config, notifier_config)

    # ----------------------------------------------------------------------
    # Run monitoring loop + rate-limit sweep
    # ----------------------------------------------------------------------
    try:
        logger.info("Starting monitoring loop...")
        components.monitor.start()
        components.sweep_task.start()

        # Keep running
        await asyncio.Event().wait()

    finally:
        logger.info("Shutting down...")
        await components.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Herald alert rule monitor (no API)")
    parser.add_argument("--system_config", default="res/system_config.yml", help="Path to system config YAML")
    parser.add_argument("--notifier_config", default="res/notifier_config.yml", help="Path to notifier config YAML")
    parser.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Overrides LOGGING.LEVEL"
    )

    args = parser.parse_args()
    try:
        asyncio.run(
            main(
                system_config_path=args.system_config,
                notifier_config_path=args.notifier_config,
                log_level=args.log_level,
            )
        )
    except KeyboardInterrupt:
        pass
