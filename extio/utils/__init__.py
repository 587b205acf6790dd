"""Utility functions"""
from extio.utils.logger import get_logger, log_metric
from extio.utils.config import get_config_manager, load_global_config

__all__ = ['get_logger', 'log_metric', 'get_config_manager', 'load_global_config']
