"""
Monitoring module exports.
"""

from qia.monitoring.logger import get_logger, log_performance_metric, setup_logging
from qia.monitoring.reporter import ResultReporter

__all__ = [
    "setup_logging",
    "get_logger",
    "log_performance_metric",
    "ResultReporter",
]
