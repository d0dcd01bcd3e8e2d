"""OpenRouter HTTP client (transport only)."""

import time
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from casework_triage.config import EngineConfig, FailureKind

SCHEMA_NAME = "triage_suggestion"


class OpenRouterError(Exception):
    """Error from OpenRouter API."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.TRANSPORT):
        super().__init__(message)
        self.kind = kind


class LLMResponse(BaseModel):
    """Content returned by a single completion request."""

    content: str
    model: str
    latency_ms: int


class OpenRouterClient:
    """Async client for OpenRouter API.

    Responsibilities:
    - One structured-output request per call
    - Per-request timeout
    - Error normalization

    Not responsible for:
    - Retries (see triage.generation)
    - Parsing or validating the returned content
    """

    def __init__(
        self,
        config: EngineConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = config.openrouter_api_key
        self._default_model = config.model
        self._api_url = config.api_url
        self._timeout = config.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def complete(
        self,
        prompt: str,
        schema: dict[str, Any],
        model: Optional[str] = None,
    ) -> LLMResponse:
        """Request a completion constrained to a JSON schema.

        Args:
            prompt: Compiled prompt, sent as a single user message
            schema: JSON Schema the response must conform to
            model: Model ID to use, or None for default

        Returns:
            LLMResponse with the raw (unvalidated) content

        Raises:
            OpenRouterError: On transport errors, non-200 responses or empty content
        """
        resolved_model = model if model else self._default_model

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": resolved_model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": SCHEMA_NAME,
                    "strict": False,
                    "schema": schema,
                },
            },
        }

        client = self._get_client()
        start = time.perf_counter()

        try:
            response = await client.post(self._api_url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise OpenRouterError(f"Request timed out after {self._timeout}s: {e}") from e
        except httpx.RequestError as e:
            raise OpenRouterError(f"Request failed: {e}") from e

        latency_ms = int((time.perf_counter() - start) * 1000)

        if response.status_code != 200:
            raise OpenRouterError(f"HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
        except (ValueError, RecursionError) as e:
            raise OpenRouterError(f"Invalid JSON envelope from provider: {e}") from e

        if not isinstance(data, dict):
            raise OpenRouterError(
                f"Invalid JSON envelope from provider: expected an object, got {type(data).__name__}"
            )

        # OpenRouter reports some upstream failures inside a 200 body
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise OpenRouterError(f"Provider error: {message}")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            raise OpenRouterError(
                "Empty response from provider", kind=FailureKind.EMPTY_RESPONSE
            )

        reported_model = data.get("model")
        if not isinstance(reported_model, str) or not reported_model:
            reported_model = resolved_model

        return LLMResponse(
            content=content,
            model=reported_model,
            latency_ms=latency_ms,
        )
