"""
Model client exports.
"""

from qia.models.openai_client import OpenAIClient

__all__ = ["OpenAIClient"]
