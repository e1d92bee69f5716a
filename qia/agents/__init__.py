"""
Agent implementations for QIA.
"""

from qia.agents.base_agent import BaseAgent
from qia.agents.executor import ExecutorAgent
from qia.agents.healer import HealerAgent
from qia.agents.rca import RCAAgent

__all__ = [
    "BaseAgent",
    "ExecutorAgent",
    "HealerAgent",
    "RCAAgent",
]
