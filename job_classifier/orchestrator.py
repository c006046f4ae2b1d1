"""
Job classification orchestrator.

Flow per job:
1. Tier-1 keyword match (synchronous, always runs)
2. If Tier-2 is enabled and Tier-1 is unsure (low confidence or flagged
   for review), ask the semantic classifier
3. A Tier-2 judgment wins, keeping the Tier-1 signals for audit;
   a missing Tier-2 judgment leaves the Tier-1 result unchanged

Red Tier-1 results are never escalated: a specialist trigger cannot be
talked down by the model.
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Awaitable, Optional, TypeVar

from .config import AppConfig, ClassifierConfig
from .lexical_matcher import tier1_keyword_match
from .models import ClassificationOutput, ClassificationResult, JobInput, TrafficLight
from .semantic_classifier import SemanticClassifier, create_semantic_classifier
from .signals import DEFAULT_SIGNAL_TABLE, SignalTable, load_signal_table

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _await_unless_cancelled(
    awaitable: Awaitable[T],
    cancel_event: Optional[asyncio.Event],
) -> tuple[bool, Optional[T]]:
    """Await, abandoning the work if cancel_event fires first. Returns (completed, value)."""
    task = asyncio.ensure_future(awaitable)
    if cancel_event is None:
        return True, await task

    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return True, task.result()

    task.cancel()
    return False, None


def merge_tier_results(tier1: ClassificationResult, tier2: ClassificationResult) -> ClassificationResult:
    """Take Tier-2's conclusion, keeping Tier-1 signals first for the audit trail."""
    return replace(tier2, signals=list(tier1.signals) + list(tier2.signals))


class JobComplexityClassifier:
    """Two-tier job complexity classification for live calls."""

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        signals: Optional[SignalTable] = None,
        semantic: Optional[SemanticClassifier] = None,
    ):
        self.config = config or ClassifierConfig()
        self.signals = signals or DEFAULT_SIGNAL_TABLE
        self.semantic = semantic

    @classmethod
    def from_config(cls, config: AppConfig) -> "JobComplexityClassifier":
        signals = None
        if config.classifier.signals_file:
            signals = load_signal_table(config.classifier.signals_file)
            logger.info(
                f"Loaded signal table from {config.classifier.signals_file}: "
                f"{len(signals.red)} red, {len(signals.amber)} amber, {len(signals.green)} green"
            )

        semantic = create_semantic_classifier(config) if config.classifier.tier2_enabled else None
        return cls(config.classifier, signals, semantic)

    def _tier2_available(self, use_tier2: Optional[bool]) -> bool:
        enabled = self.config.tier2_enabled if use_tier2 is None else use_tier2
        return enabled and self.semantic is not None

    def should_escalate(self, tier1_result: ClassificationResult) -> bool:
        """Check whether a Tier-1 result should be confirmed by Tier-2."""
        if tier1_result.traffic_light == TrafficLight.RED:
            return False
        return tier1_result.needs_review or tier1_result.confidence < self.config.escalation_threshold

    def classify_job_complexity_sync(self, description: str, catalog_matched: bool) -> ClassificationOutput:
        """Tier-1 only classification for instant feedback during a live call."""
        start = time.perf_counter()
        result = tier1_keyword_match(description, catalog_matched, self.signals)
        return ClassificationOutput(result=result, processing_time_ms=(time.perf_counter() - start) * 1000)

    async def classify_job_complexity(
        self,
        description: str,
        catalog_matched: bool,
        use_tier2: Optional[bool] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ClassificationOutput:
        """Classify one job, escalating to Tier-2 when Tier-1 is unsure."""
        start = time.perf_counter()
        tier1_result = tier1_keyword_match(description, catalog_matched, self.signals)
        result = tier1_result

        if self._tier2_available(use_tier2) and self.should_escalate(tier1_result):
            completed, tier2_result = await _await_unless_cancelled(
                self.semantic.classify(description), cancel_event
            )
            if not completed:
                logger.info("Call ended before Tier-2 finished - discarding Tier-2 classification")
            elif tier2_result is not None:
                result = merge_tier_results(tier1_result, tier2_result)

        return ClassificationOutput(result=result, processing_time_ms=(time.perf_counter() - start) * 1000)

    async def classify_multiple_jobs(
        self,
        jobs: list[JobInput],
        use_tier2: Optional[bool] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, ClassificationResult]:
        """
        Classify every job in a call.

        Tier-1 runs for all jobs; Tier-2 runs concurrently for the jobs that
        need it. One job's Tier-2 failure leaves only that job at Tier-1.
        """
        seen = set()
        for job in jobs:
            if job.id in seen:
                raise ValueError(f"Duplicate job id in batch: {job.id}")
            seen.add(job.id)

        results: dict[str, ClassificationResult] = {}
        for job in jobs:
            results[job.id] = tier1_keyword_match(job.description, job.matched, self.signals)

        if not self._tier2_available(use_tier2):
            return results

        escalated = [job for job in jobs if self.should_escalate(results[job.id])]
        if not escalated:
            return results

        logger.info(f"Escalating {len(escalated)} of {len(jobs)} jobs to Tier-2")

        completed, tier2_results = await _await_unless_cancelled(
            asyncio.gather(
                *(self.semantic.classify(job.description) for job in escalated),
                return_exceptions=True,
            ),
            cancel_event,
        )
        if not completed:
            logger.info("Call ended before Tier-2 finished - discarding Tier-2 classifications")
            return results

        for job, tier2_result in zip(escalated, tier2_results):
            if isinstance(tier2_result, BaseException):
                logger.error(f"Tier-2 classification failed for job {job.id}: {tier2_result}")
                continue
            if tier2_result is not None:
                results[job.id] = merge_tier_results(results[job.id], tier2_result)

        return results
