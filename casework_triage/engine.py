"""Triage engine public adapter."""

import asyncio
from typing import Iterable, Optional

import httpx

from casework_triage.config import EngineConfig
from casework_triage.openrouter.client import OpenRouterClient
from casework_triage.schemas import TriageContext, TriageResult, TriageSuggestion
from casework_triage.triage.agent import run_triage
from casework_triage.triage.generation import Sleep, StructuredGenerator


class TriageEngine:
    """Public interface to the triage suggestion engine.

    Invocations are independent: the engine holds only read-only
    configuration and a reusable HTTP client, so callers may triage many
    messages concurrently.

    Usage:
        from casework_triage import EngineConfig, TriageEngine

        async with TriageEngine(EngineConfig(openrouter_api_key="sk-or-...")) as engine:
            suggestion = await engine.analyze(context)
    """

    def __init__(
        self,
        config: EngineConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ):
        """Initialize the engine with configuration.

        Args:
            config: EngineConfig containing API key and retry settings
            transport: Optional httpx transport (testing, proxies)
            sleep: Optional backoff sleep, defaults to asyncio.sleep
        """
        self._config = config
        self._client = OpenRouterClient(config, transport=transport)
        self._generator = StructuredGenerator(
            self._client, config, sleep=sleep or asyncio.sleep
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    async def analyze_with_diagnostics(self, context: TriageContext) -> TriageResult:
        """Triage one message and return the suggestion with diagnostics."""
        return await run_triage(context, self._generator, self._config)

    async def analyze(self, context: TriageContext) -> TriageSuggestion:
        """Triage one message and return only the suggestion."""
        result = await self.analyze_with_diagnostics(context)
        return result.suggestion

    async def analyze_many(
        self, contexts: Iterable[TriageContext]
    ) -> list[TriageResult]:
        """Triage several messages concurrently; results keep input order."""
        return list(
            await asyncio.gather(
                *(self.analyze_with_diagnostics(context) for context in contexts)
            )
        )

    def run_sync(self, context: TriageContext) -> TriageResult:
        """Synchronous wrapper for analyze_with_diagnostics()."""

        async def _run() -> TriageResult:
            try:
                return await self.analyze_with_diagnostics(context)
            finally:
                await self.aclose()

        return asyncio.run(_run())

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TriageEngine":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
