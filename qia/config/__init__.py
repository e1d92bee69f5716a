"""
Configuration module exports.
"""

from qia.config.settings import (
    AgentModelConfig,
    ClassificationConfig,
    ExecutionConfig,
    HealingConfig,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "AgentModelConfig",
    "ExecutionConfig",
    "ClassificationConfig",
    "HealingConfig",
    "get_settings",
]
