"""OpenAI API client wrapper for QIA."""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from qia.config.settings import get_settings


class OpenAIClient:
    """Wrapper for OpenAI API interactions."""

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: Optional[str] = None,
        max_retries: Optional[int] = None,
        request_timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize OpenAI client.

        Args:
            model: Model to use for completions
            api_key: Optional API key (defaults to env/config)
            max_retries: Maximum number of retry attempts
            request_timeout: Per-request timeout in seconds
        """
        settings = get_settings()
        self.model = model
        self.max_retries = max_retries or settings.openai_max_retries
        self.logger = logging.getLogger("qia.openai_client")

        self.api_key = api_key or settings.openai_api_key
        self.request_timeout = request_timeout or float(
            settings.openai_request_timeout_seconds
        )

        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
            )

        self.client = AsyncOpenAI(
            api_key=self.api_key,
            max_retries=self.max_retries,
        )

    async def call(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        system_prompt: Optional[str] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Make a call to the OpenAI API."""
        final_messages: List[Dict[str, Any]] = []
        if system_prompt:
            final_messages.append({"role": "system", "content": system_prompt})
        final_messages.extend(messages)

        self.logger.debug(
            f"OpenAI API call: model={self.model}, "
            f"messages={len(final_messages)}, temperature={temperature}"
        )

        try:
            if self._should_use_responses_api(self.model):
                return await self._call_responses_api(
                    final_messages=final_messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    response_format=response_format,
                )

            return await self._call_chat_completions(
                final_messages=final_messages,
                temperature=temperature,
                max_tokens=max_tokens,
                response_format=response_format,
            )

        except openai.APIError as e:
            self.logger.error(f"OpenAI API error: {e}")
            raise

    def _should_use_responses_api(self, model: str) -> bool:
        """Return True when the Responses API should be used."""
        return model.startswith("gpt-5") or model.startswith("gpt-4.1")

    def _supports_responses_temperature(self, model: str) -> bool:
        # Reasoning models reject temperature.
        return not model.startswith("gpt-5")

    async def _call_chat_completions(
        self,
        final_messages: List[Dict[str, Any]],
        temperature: float,
        max_tokens: Optional[int],
        response_format: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": final_messages,
            "temperature": temperature,
        }

        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        if response_format:
            kwargs["response_format"] = response_format

        response = await self.client.chat.completions.create(
            timeout=self.request_timeout,
            **kwargs,
        )

        content = response.choices[0].message.content or ""
        usage = response.usage

        return {
            "content": self._decode_content(content, response_format),
            "usage": {
                "prompt_tokens": self._safe_usage_lookup(usage, "prompt_tokens"),
                "completion_tokens": self._safe_usage_lookup(usage, "completion_tokens"),
                "total_tokens": self._safe_usage_lookup(usage, "total_tokens"),
            },
            "model": response.model,
            "finish_reason": response.choices[0].finish_reason,
        }

    async def _call_responses_api(
        self,
        final_messages: List[Dict[str, Any]],
        temperature: float,
        max_tokens: Optional[int],
        response_format: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        instructions, input_items = self._prepare_responses_input(final_messages)

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "input": input_items,
        }

        if instructions:
            kwargs["instructions"] = instructions

        if max_tokens:
            kwargs["max_output_tokens"] = max_tokens

        if response_format and response_format.get("type") == "json_object":
            kwargs["text"] = {"format": {"type": "json_object"}}

        if self._supports_responses_temperature(self.model):
            kwargs["temperature"] = temperature

        response = await self.client.responses.create(
            timeout=self.request_timeout,
            **kwargs,
        )

        usage = getattr(response, "usage", None)

        return {
            "content": self._decode_content(
                getattr(response, "output_text", "") or "", response_format
            ),
            "usage": {
                "prompt_tokens": self._safe_usage_lookup(usage, "input_tokens"),
                "completion_tokens": self._safe_usage_lookup(usage, "output_tokens"),
                "total_tokens": self._safe_usage_lookup(usage, "total_tokens"),
            },
            "model": getattr(response, "model", self.model),
            "finish_reason": getattr(response, "status", None),
        }

    def _prepare_responses_input(
        self, final_messages: Sequence[Dict[str, Any]]
    ) -> tuple[Optional[str], List[Dict[str, Any]]]:
        """Split system messages into instructions; map the rest to input items."""
        instructions: List[str] = []
        input_items: List[Dict[str, Any]] = []

        for message in final_messages:
            role = message.get("role", "user")
            text = str(message.get("content", ""))
            if role == "system":
                instructions.append(text)
                continue
            content_type = "output_text" if role == "assistant" else "input_text"
            input_items.append({"role": role, "content": [{"type": content_type, "text": text}]})

        return ("\n".join(instructions) or None), input_items

    def _decode_content(
        self, content: str, response_format: Optional[Dict[str, Any]]
    ) -> Any:
        if not response_format or response_format.get("type") != "json_object":
            return content
        if not content:
            return {}
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            self.logger.error(f"Failed to parse JSON response: {exc}")
            return {"error": "Invalid JSON response", "raw": content}

    def _safe_usage_lookup(self, usage: Any, key: str) -> int:
        if usage is None:
            return 0
        if isinstance(usage, dict):
            return int(usage.get(key, 0) or 0)
        return int(getattr(usage, key, 0) or 0)
