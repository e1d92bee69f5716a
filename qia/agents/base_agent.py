"""
Base implementation for AI agents in QIA.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from qia.error_handling.exceptions import GenerativeResponseError
from qia.models.openai_client import OpenAIClient


class BaseAgent:
    """Base implementation of an AI agent with OpenAI integration."""

    def __init__(
        self,
        name: str,
        model: str = "gpt-4o",
        system_prompt: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        client: Optional[OpenAIClient] = None,
    ) -> None:
        """
        Initialize the base agent.

        Args:
            name: Name identifier for the agent
            model: OpenAI model to use
            system_prompt: System prompt for the agent
            temperature: Temperature for model responses
            max_tokens: Upper bound on completion length
            client: Pre-built client; created lazily when omitted
        """
        self.name = name
        self.model = model
        self.logger = logging.getLogger(f"agent.{name}")
        self.system_prompt = system_prompt or self._get_default_system_prompt()
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    def _get_default_system_prompt(self) -> str:
        return (
            f"You are {self.name}, an agent in the QIA test quality pipeline. "
            f"Be precise, factual and focused on your specific role."
        )

    @property
    def client(self) -> OpenAIClient:
        """Lazy-load OpenAI client."""
        if self._client is None:
            self._client = OpenAIClient(model=self.model)
        return self._client

    async def call_openai(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make a call to OpenAI API.

        Args:
            messages: List of message dictionaries
            temperature: Override default temperature
            response_format: Optional response format specification

        Returns:
            API response
        """
        return await self.client.call(
            messages=messages,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens,
            system_prompt=self.system_prompt,
            response_format=response_format,
        )

    def build_messages(
        self,
        user_content: str,
        assistant_content: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        """Build message list for OpenAI API."""
        messages = [{"role": "user", "content": user_content}]

        if assistant_content:
            messages.append({"role": "assistant", "content": assistant_content})

        return messages

    def parse_json_content(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """
        Extract a JSON object from an OpenAI response.

        Raises:
            GenerativeResponseError: If the content is not a JSON object
        """
        content = response.get("content")

        if isinstance(content, str):
            text = content.strip().strip("`")
            if text.startswith("json"):
                text = text[4:]
            try:
                content = json.loads(text)
            except json.JSONDecodeError as exc:
                raise GenerativeResponseError(
                    "Response content is not valid JSON",
                    agent_name=self.name,
                    raw_response=content,
                ) from exc

        if not isinstance(content, dict) or "error" in content and "raw" in content:
            raise GenerativeResponseError(
                "Response content is not a JSON object",
                agent_name=self.name,
                raw_response=str(content),
            )

        return content
