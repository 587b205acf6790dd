"""
Logging System

Console gets warnings and errors; the rotating file gets everything at the
configured level. Metric samples go to their own dated file.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from datetime import datetime

from extio.utils.config import get_config_manager

ROOT_LOGGER = 'extio'
METRICS_LOGGER = 'extio_metrics'


class SafeFormatter(logging.Formatter):
    """Formatter that handles unicode errors gracefully"""

    def format(self, record):
        try:
            return super().format(record)
        except UnicodeEncodeError:
            # Fallback: ASCII-safe version
            record.msg = str(record.msg).encode('ascii', 'replace').decode('ascii')
            return super().format(record)


class LoggerManager:
    """Manages all loggers with Unicode support"""

    _instance = None
    _loggers = {}
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(LoggerManager, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._setup_logging()
            self._initialized = True

    def _setup_logging(self):
        """Setup logging system"""
        config = get_config_manager()
        log_dir = Path(config.get('logging.dir', 'logs'))
        level = str(config.get('logging.level', 'INFO'))

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Warning: Log directory unavailable ({e})")

        self._setup_logger(
            ROOT_LOGGER,
            str(log_dir / 'extio.log'),
            level,
            10 * 1024 * 1024,  # 10MB
            5  # 5 backups
        )

        # Metrics get a separate dated file
        metrics_log = log_dir / f"metrics_{datetime.now().strftime('%Y%m%d')}.log"
        self._setup_metrics_logger(str(metrics_log))

    def _setup_logger(
        self,
        name: str,
        log_file: str,
        level: str,
        max_size: int,
        backup_count: int
    ):
        """Setup individual logger with UTF-8 support"""
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        logger.handlers = []  # Clear existing
        logger.propagate = False  # Don't propagate to root

        formatter = SafeFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(logging.WARNING)
        logger.addHandler(console_handler)

        # File handler with UTF-8 encoding
        try:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: File logging failed ({e})")

        self._loggers[name] = logger

    def _setup_metrics_logger(self, log_file: str):
        """Setup dedicated metrics logger"""
        logger = logging.getLogger(METRICS_LOGGER)
        logger.setLevel(logging.INFO)
        logger.handlers = []  # Clear existing
        logger.propagate = False  # Don't propagate to root

        formatter = SafeFormatter(
            '%(asctime)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # File handler only (no console spam)
        try:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=30,  # Keep 30 days
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Metrics logging failed ({e})")

        self._loggers[METRICS_LOGGER] = logger

    def get_logger(self, name: str = ROOT_LOGGER) -> logging.Logger:
        """Get logger instance"""
        full_name = f'{ROOT_LOGGER}.{name}' if name != ROOT_LOGGER else name

        if full_name not in self._loggers:
            logger = logging.getLogger(full_name)
            logger.setLevel(logging.NOTSET)
            # Children inherit level and handlers from 'extio'
            logger.propagate = True
            self._loggers[full_name] = logger

        return self._loggers[full_name]

    def log_metric(self, name: str, value: float):
        """
        Write one metric sample to the metrics log.

        Args:
            name: Metric name
            value: Sample value
        """
        metrics_logger = logging.getLogger(METRICS_LOGGER)
        metrics_logger.info(f"{name}={value}")

# Global instance
_logger_manager = None

def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get logger for a module.

    Args:
        name: Module name (e.g., 'backend.http', 'factory')

    Returns:
        Logger instance
    """
    global _logger_manager
    if _logger_manager is None:
        _logger_manager = LoggerManager()
    return _logger_manager.get_logger(name)

def log_metric(name: str, value: float):
    """
    Log a metric sample - convenience function.

    Args:
        name: Metric name
        value: Sample value
    """
    global _logger_manager
    if _logger_manager is None:
        _logger_manager = LoggerManager()
    _logger_manager.log_metric(name, value)
