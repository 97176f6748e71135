"""LiteLLM provider for OpenAI-compatible completion endpoints."""

from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from anchor.providers.base import LLMProvider, LLMResponse

_COMPLETIONS_SUFFIX = "/chat/completions"


def normalize_api_base(endpoint_url: str | None) -> str | None:
    """
    Turn a full completions URL into the base URL LiteLLM expects.

    ``https://host/v1/chat/completions`` becomes ``https://host/v1``.
    """
    if not endpoint_url:
        return None
    base = endpoint_url.rstrip("/")
    if base.endswith(_COMPLETIONS_SUFFIX):
        base = base[: -len(_COMPLETIONS_SUFFIX)]
    return base


class LiteLLMProvider(LLMProvider):
    """
    Chat completions against any OpenAI-compatible endpoint via LiteLLM.

    Requests are always non-streaming.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "gpt-3.5-turbo",
        timeout_seconds: float = 60.0,
    ):
        super().__init__(api_key, normalize_api_base(api_base))
        self.default_model = default_model
        self.request_timeout_seconds = timeout_seconds

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True

    def _resolve_model(self, model: str | None) -> str:
        model = model or self.default_model
        # Custom endpoints speak the OpenAI protocol regardless of model family
        if self.api_base and not model.startswith("openai/"):
            model = f"openai/{model}"
        return model

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Send a non-streaming chat completion request via LiteLLM.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model identifier (e.g., 'gpt-4o-mini').
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.

        Returns:
            LLMResponse with content, or finish_reason "error" on failure.
        """
        kwargs: dict[str, Any] = {
            "model": self._resolve_model(model),
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "timeout": self.request_timeout_seconds,
            "stream": False,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.api_key:
            kwargs["api_key"] = self.api_key

        try:
            response = await acompletion(**kwargs)
            return self._parse_response(response)
        except Exception as e:
            # Redact potential API keys from error messages
            error_msg = str(e)
            if self.api_key and len(self.api_key) > 8:
                error_msg = error_msg.replace(self.api_key, "***")
            logger.error(f"LLM call error: {error_msg}")
            return LLMResponse(
                content=f"Error calling LLM: {error_msg}",
                finish_reason="error",
            )

    def _parse_response(self, response: Any) -> LLMResponse:
        """Parse LiteLLM response into our standard format."""
        if not response.choices:
            return LLMResponse(content="No response from AI.", finish_reason="error")

        choice = response.choices[0]

        usage = {}
        if hasattr(response, "usage") and response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=choice.message.content,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
            model=getattr(response, "model", None),
        )

    def get_default_model(self) -> str:
        """Get the default model."""
        return self.default_model
