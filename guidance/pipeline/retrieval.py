"""ContextRetriever: asks the sermon search service for supporting passages.

Soft dependency. Every failure mode collapses to an empty passage list.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx

from guidance.pipeline.types import ClassificationLabel, ExternalCallResult, SupportingPassage

logger = logging.getLogger(__name__)


class ContextRetriever:
    def __init__(
        self,
        search_url: Optional[str],
        *,
        limit: int = 3,
        threshold: float = 0.75,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._search_url = search_url
        self._limit = limit
        self._threshold = threshold
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._search_url)

    async def retrieve(self, query: str, label: ClassificationLabel) -> List[SupportingPassage]:
        """Ranked passages for *query*; [] without a call for brief follow-ups or when disabled."""
        if label is ClassificationLabel.BRIEF_FOLLOW_UP:
            logger.debug("ContextRetriever: skipped for brief follow-up")
            return []
        if not self.enabled:
            return []
        result = await self.fetch(query)
        if not result.ok:
            logger.warning("ContextRetriever: continuing without passages (%s)", result.error)
        return result.unwrap_or([])

    async def fetch(self, query: str) -> ExternalCallResult[List[SupportingPassage]]:
        payload = {"query": query, "limit": self._limit, "threshold": self._threshold}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(self._search_url, json=payload)  # type: ignore[arg-type]
        except httpx.TimeoutException:
            return ExternalCallResult.failure(f"timed out after {self._timeout_seconds:.0f}s")
        except httpx.HTTPError as exc:
            return ExternalCallResult.failure(f"transport error: {exc}")

        if resp.status_code >= 400:
            return ExternalCallResult.failure(f"HTTP {resp.status_code}")
        try:
            data: Any = resp.json()
        except ValueError:
            return ExternalCallResult.failure("response is not JSON")
        if not isinstance(data, dict) or not isinstance(data.get("sermons", []), list):
            return ExternalCallResult.failure("unexpected response shape")

        passages: List[SupportingPassage] = []
        for item in data.get("sermons") or []:
            if not isinstance(item, dict):
                logger.debug("ContextRetriever: skipping non-object sermon entry")
                continue
            try:
                passages.append(SupportingPassage.from_dict(item))
            except (TypeError, ValueError) as exc:
                logger.warning("ContextRetriever: skipping malformed sermon entry (%s)", exc)
        logger.info("ContextRetriever: %d passage(s) for query", len(passages))
        return ExternalCallResult.success(passages)
