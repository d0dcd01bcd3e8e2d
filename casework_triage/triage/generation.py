"""Structured generation with bounded retries and exponential backoff."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from casework_triage.config import EngineConfig
from casework_triage.openrouter.client import OpenRouterClient, OpenRouterError
from casework_triage.schemas import AttemptFailure, ValidationFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

Validator = Callable[[str], Union[T, ValidationFailure]]
Sleep = Callable[[float], Awaitable[Any]]


class GenerationState(str, Enum):
    """States of the retry loop."""

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class AttemptSuccess(Generic[T]):
    """A single attempt that produced a valid value."""

    attempt: int
    raw: str
    value: T


@dataclass
class GenerationOutcome(Generic[T]):
    """Terminal result of the retry loop.

    ``value`` is set only when ``state`` is SUCCEEDED. ``last_raw`` holds the
    last raw text received, valid or not, for diagnostics.
    """

    state: GenerationState
    attempts: int
    latency_ms: int
    value: Optional[T] = None
    last_raw: Optional[str] = None
    failures: list[AttemptFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == GenerationState.SUCCEEDED

    @property
    def last_error(self) -> Optional[str]:
        return self.failures[-1].message if self.failures else None


class StructuredGenerator:
    """Drive the provider until it returns output that passes validation.

    Every failure kind (transport, empty, malformed, schema) consumes one
    attempt. After attempt n fails and attempts remain, the generator waits
    ``base_delay * 2**n`` seconds. Exhaustion is returned, never raised.
    """

    def __init__(
        self,
        client: OpenRouterClient,
        config: EngineConfig,
        sleep: Sleep = asyncio.sleep,
    ):
        self._client = client
        self._model = config.model
        self._max_retries = config.max_retries
        self._base_delay = config.base_delay
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-indexed) failed attempt."""
        return self._base_delay * (2**attempt)

    async def _attempt(
        self,
        attempt: int,
        prompt: str,
        schema: dict[str, Any],
        validate: Validator,
    ) -> tuple[Optional[str], Union[AttemptSuccess, AttemptFailure]]:
        try:
            response = await self._client.complete(prompt, schema, model=self._model)
        except OpenRouterError as e:
            return None, AttemptFailure(attempt=attempt, kind=e.kind, message=str(e))

        result = validate(response.content)
        if isinstance(result, ValidationFailure):
            return response.content, AttemptFailure(
                attempt=attempt, kind=result.kind, message=result.message
            )
        return response.content, AttemptSuccess(
            attempt=attempt, raw=response.content, value=result
        )

    async def generate(
        self,
        prompt: str,
        schema: dict[str, Any],
        validate: Validator,
    ) -> GenerationOutcome:
        """Run the retry loop for one prompt.

        Args:
            prompt: Compiled prompt
            schema: JSON Schema the provider must conform to
            validate: Converts raw text to a value or a ValidationFailure

        Returns:
            GenerationOutcome in state SUCCEEDED or EXHAUSTED
        """
        failures: list[AttemptFailure] = []
        last_raw: Optional[str] = None
        state = GenerationState.ATTEMPTING
        attempt = 0
        start = time.perf_counter()

        while state == GenerationState.ATTEMPTING:
            attempt += 1
            raw, result = await self._attempt(attempt, prompt, schema, validate)
            if raw is not None:
                last_raw = raw

            if isinstance(result, AttemptSuccess):
                latency_ms = int((time.perf_counter() - start) * 1000)
                logger.info(
                    f"Generation succeeded on attempt {attempt}/{self._max_retries} "
                    f"({latency_ms}ms)"
                )
                return GenerationOutcome(
                    state=GenerationState.SUCCEEDED,
                    attempts=attempt,
                    latency_ms=latency_ms,
                    value=result.value,
                    last_raw=last_raw,
                    failures=failures,
                )

            failures.append(result)
            logger.warning(
                f"Attempt {attempt}/{self._max_retries} failed "
                f"[{result.kind.value}]: {result.message}"
            )

            if attempt >= self._max_retries:
                state = GenerationState.EXHAUSTED
            else:
                await self._sleep(self.backoff_delay(attempt))

        logger.error(f"All {self._max_retries} attempts exhausted")
        return GenerationOutcome(
            state=GenerationState.EXHAUSTED,
            attempts=attempt,
            latency_ms=int((time.perf_counter() - start) * 1000),
            last_raw=last_raw,
            failures=failures,
        )
