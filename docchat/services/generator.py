"""Single-shot text generation through OpenRouter chat completions."""

from __future__ import annotations

from typing import Protocol

import httpx

from docchat.core.errors import GenerationError
from docchat.core.logging import get_logger
from docchat.core.retry import RetryPolicy

logger = get_logger(__name__)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


def is_transient(exc: BaseException) -> bool:
    """Timeouts, connection failures, 429 and 5xx responses are worth retrying."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return False


class OpenRouterGenerator:
    def __init__(
        self,
        client: httpx.Client,
        *,
        model: str,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._client = client
        self._model = model.strip()
        self._retry = retry_policy or RetryPolicy()

    @classmethod
    def from_settings(
        cls, api_key: str, base_url: str, model: str, *, timeout: float, **kwargs
    ) -> "OpenRouterGenerator":
        if not api_key.strip():
            raise GenerationError("Missing OpenRouter API key.")
        client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
        )
        return cls(client, model=model, **kwargs)

    def generate(self, prompt: str) -> str:
        """Send one user message and return the assistant's reply.

        Raises:
            GenerationError: on transport/HTTP failure or an empty reply
        """
        try:
            payload = self._retry.call(self._post, prompt, retry_on=is_transient)
        except httpx.TimeoutException as e:
            logger.error("OpenRouter request timed out: %s", e)
            raise GenerationError("Generation timed out.") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "OpenRouter HTTP error %s: %s",
                e.response.status_code,
                e.response.text[:200] if e.response.text else "no body",
            )
            raise GenerationError(f"Generation failed with HTTP {e.response.status_code}.") from e
        except httpx.HTTPError as e:
            logger.error("OpenRouter request failed: %s", e)
            raise GenerationError("Generation request failed.") from e
        except (ValueError, TypeError) as e:
            logger.error("Failed to parse OpenRouter response: %s", e)
            raise GenerationError("Generation returned an unreadable response.") from e

        content = _extract_message_content(payload)
        if not content:
            raise GenerationError("Generation returned an empty response.")
        return content

    def close(self) -> None:
        self._client.close()

    def _post(self, prompt: str) -> dict:
        response = self._client.post(
            "/chat/completions",
            json={
                "model": self._model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": 0,
                "stream": False,
            },
        )
        response.raise_for_status()
        return response.json()


def _extract_message_content(payload: dict) -> str:
    """Safely extract the assistant message content from OpenRouter payload."""
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") if isinstance(first, dict) else {}
    content = message.get("content") if isinstance(message, dict) else ""
    return str(content or "").strip()
