import logging
import os

LOG_LEVEL_ENV = "VRAM_PLANNER_LOG_LEVEL"


class Logger:
    """Utility class for standardized logging configuration."""

    @staticmethod
    def get(name: str) -> logging.Logger:
        """
        Get a logger for a planner module.

        The root logger is configured on first use unless the host application
        already did so; VRAM_PLANNER_LOG_LEVEL overrides the default INFO level.
        """
        if not logging.getLogger().hasHandlers():
            level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
            logging.basicConfig(
                level=getattr(logging, level, logging.INFO),
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            )
        return logging.getLogger(name)
