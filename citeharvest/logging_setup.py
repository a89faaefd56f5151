"""
Logging configuration for CiteHarvest.

Provides centralized logging setup with:
- Console output (always enabled)
- File logging with rotation (configurable)
- Separate error log for failed workflow stages
"""

import sys
from pathlib import Path
from loguru import logger

from .config import DATA_DIR

# Determine log directory
LOG_DIR = DATA_DIR / 'logs'

# Flag to track if logging is already configured
_logging_configured = False


def setup_logging(
    log_level: str = "INFO",
    enable_file_logging: bool = True,
    rotation_size_mb: int = 10,
    retention_count: int = 5,
    verbose: bool = False,
    log_dir: Path = None,
):
    """
    Configure logging for CiteHarvest.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        enable_file_logging: Whether to write logs to files
        rotation_size_mb: Size in MB before rotating log file
        retention_count: Number of rotated log files to keep
        verbose: Enable verbose/debug output
        log_dir: Override for the log directory
    """
    global _logging_configured

    if _logging_configured:
        return

    # Remove default handler
    logger.remove()

    effective_level = "DEBUG" if verbose else log_level.upper()

    console_format = (
        "<green>{time:HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
        "<level>{message}</level>"
    )
    logger.add(
        sys.stderr,
        format=console_format,
        level=effective_level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if enable_file_logging:
        target_dir = Path(log_dir) if log_dir else LOG_DIR
        target_dir.mkdir(parents=True, exist_ok=True)

        file_format = (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )

        # Main application log, always at DEBUG for troubleshooting
        logger.add(
            str(target_dir / "citeharvest.log"),
            format=file_format,
            level="DEBUG",
            rotation=f"{rotation_size_mb} MB",
            retention=retention_count,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

        logger.add(
            str(target_dir / "errors.log"),
            format=file_format,
            level="ERROR",
            rotation=f"{rotation_size_mb} MB",
            retention=retention_count,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

        logger.debug(f"File logging enabled. Log directory: {target_dir}")

    _logging_configured = True
    logger.debug(f"CiteHarvest logging initialized (level={effective_level})")


def init_from_config(verbose: bool = False):
    """Initialize logging from config settings."""
    from .config import config
    setup_logging(
        log_level=config.LOG_LEVEL,
        enable_file_logging=config.ENABLE_FILE_LOGGING,
        rotation_size_mb=config.LOG_ROTATION_SIZE_MB,
        retention_count=config.LOG_RETENTION_COUNT,
        verbose=verbose or config.VERBOSE,
    )


__all__ = [
    'setup_logging',
    'init_from_config',
]
