"""
Tier-1 lexical classification.

Pure, synchronous keyword/phrase matching over a single job description.
Red signals win over everything, including a catalog match; text with no
recognised signal defaults to amber rather than green. Borderline phrases
flag green results for review without changing the light.
"""

import logging
import re
from functools import lru_cache
from typing import Optional

from .models import ClassificationResult, RecommendedRoute, TrafficLight
from .signals import DEFAULT_SIGNAL_TABLE, Signal, SignalTable

logger = logging.getLogger(__name__)

CATALOG_CONFIDENCE = 95
CATALOG_WITH_AMBER_CONFIDENCE = 80
RED_BASE_CONFIDENCE = 60
RED_CONFIDENCE_CAP = 95
AMBER_CONFIDENCE = 55
UNRECOGNISED_CONFIDENCE = 40
GREEN_BASE_CONFIDENCE = 70
GREEN_CONFIDENCE_CAP = 85

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'"})


def _plural_suffix(word: str) -> str:
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return r"(?:'s|es)?"
    return r"(?:'s|s)?"


@lru_cache(maxsize=1024)
def _phrase_pattern(phrase: str) -> re.Pattern:
    """Word-boundary pattern: words match across whitespace/hyphens, last word may be plural or possessive."""
    words = re.split(r"[\s\-]+", phrase.strip().lower().translate(_APOSTROPHES))
    body = r"[\s\-]+".join(re.escape(w) for w in words)
    return re.compile(rf"(?<!\w){body}{_plural_suffix(words[-1])}(?!\w)")


def _match(text: str, signals: tuple[Signal, ...]) -> list[Signal]:
    return [s for s in signals if _phrase_pattern(s.phrase).search(text)]


def _describe(label: str, matched: list[Signal]) -> list[str]:
    return [f'{label}: "{s.phrase}"' for s in matched]


def tier1_keyword_match(
    description: str,
    catalog_matched: bool,
    signals: Optional[SignalTable] = None,
) -> ClassificationResult:
    """Classify a job description by keyword signals alone."""
    table = signals or DEFAULT_SIGNAL_TABLE
    text = (description or "").lower().translate(_APOSTROPHES)

    if not text.strip():
        logger.debug("[Tier1] AMBER (empty description) - needs review")
        return ClassificationResult(
            traffic_light=TrafficLight.AMBER,
            recommended_route=RecommendedRoute.VIDEO,
            confidence=0,
            tier=1,
            signals=[],
            complexity_score=5,
            needs_specialist=False,
            needs_review=True,
        )

    red = _match(text, table.red)
    if red:
        weight = sum(s.weight for s in red)
        result = ClassificationResult(
            traffic_light=TrafficLight.RED,
            recommended_route=RecommendedRoute.REFER,
            confidence=min(RED_BASE_CONFIDENCE + 10 * weight, RED_CONFIDENCE_CAP),
            tier=1,
            signals=_describe(TrafficLight.RED.value, red),
            complexity_score=9,
            needs_specialist=True,
        )
        logger.debug(f"[Tier1] RED ({', '.join(result.signals)}) confidence {result.confidence}")
        return result

    amber = _match(text, table.amber)
    borderline = _describe("borderline", _match(text, table.borderline))

    if catalog_matched:
        result = ClassificationResult(
            traffic_light=TrafficLight.GREEN,
            recommended_route=RecommendedRoute.INSTANT,
            confidence=CATALOG_WITH_AMBER_CONFIDENCE if amber else CATALOG_CONFIDENCE,
            tier=1,
            signals=["catalog match"] + _describe(TrafficLight.AMBER.value, amber) + borderline,
            complexity_score=2,
            needs_specialist=False,
            needs_review=bool(amber or borderline),
        )
        logger.debug(f"[Tier1] GREEN (catalog match) confidence {result.confidence}")
        return result

    if amber:
        result = ClassificationResult(
            traffic_light=TrafficLight.AMBER,
            recommended_route=RecommendedRoute.VIDEO,
            confidence=AMBER_CONFIDENCE,
            tier=1,
            signals=_describe(TrafficLight.AMBER.value, amber),
            complexity_score=5,
            needs_specialist=False,
        )
        logger.debug(f"[Tier1] AMBER ({', '.join(result.signals)})")
        return result

    green = _match(text, table.green)
    if green:
        weight = sum(s.weight for s in green)
        result = ClassificationResult(
            traffic_light=TrafficLight.GREEN,
            recommended_route=RecommendedRoute.INSTANT,
            confidence=min(GREEN_BASE_CONFIDENCE + 5 * weight, GREEN_CONFIDENCE_CAP),
            tier=1,
            signals=_describe(TrafficLight.GREEN.value, green) + borderline,
            complexity_score=2,
            needs_specialist=False,
            needs_review=bool(borderline),
        )
        logger.debug(f"[Tier1] GREEN ({', '.join(result.signals)}) confidence {result.confidence}")
        return result

    logger.debug("[Tier1] AMBER (no recognised signal)")
    return ClassificationResult(
        traffic_light=TrafficLight.AMBER,
        recommended_route=RecommendedRoute.VIDEO,
        confidence=UNRECOGNISED_CONFIDENCE,
        tier=1,
        signals=[],
        complexity_score=5,
        needs_specialist=False,
        needs_review=True,
    )
