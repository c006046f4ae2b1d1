"""
Call-level route recommendation.

The most severe job decides the route for the whole call, and the weakest
determinant job sets the confidence.
"""

import logging
from typing import Mapping

from .models import ClassificationResult, OverallRecommendation, RecommendedRoute, TrafficLight

logger = logging.getLogger(__name__)


class EmptyJobSetError(ValueError):
    """Raised when a recommendation is requested for a call with no jobs."""


def _leading_evidence(result: ClassificationResult) -> str:
    if result.signals:
        return result.signals[0]
    if result.reasoning:
        return result.reasoning
    return "no recognised signal"


def _build_reason(summary: str, count: int, job_id: str, result: ClassificationResult) -> str:
    jobs = f"{count} job{'s' if count > 1 else ''}"
    return f"{jobs} {summary} - job {job_id}: {_leading_evidence(result)}"


def get_overall_route_recommendation(results: Mapping[str, ClassificationResult]) -> OverallRecommendation:
    """
    Reduce per-job classifications to one recommendation for the call.

    - Any red job, specialist job or referred job -> refer
    - Otherwise any amber job -> video (visit if an amber job needs one)
    - Otherwise (all green) -> instant

    Raises:
        EmptyJobSetError: If results is empty
    """
    if not results:
        raise EmptyJobSetError("Cannot recommend a route for a call with no jobs")

    specialist = {
        job_id: r for job_id, r in results.items()
        if r.needs_specialist
        or r.traffic_light == TrafficLight.RED
        or r.recommended_route == RecommendedRoute.REFER
    }
    amber = {job_id: r for job_id, r in results.items() if r.traffic_light == TrafficLight.AMBER}

    if specialist:
        route = RecommendedRoute.REFER
        determinants = specialist
        summary = "flagged for specialist referral"
    elif amber:
        determinants = amber
        if any(r.recommended_route == RecommendedRoute.VISIT for r in amber.values()):
            route = RecommendedRoute.VISIT
            summary = "flagged for a site visit"
        else:
            route = RecommendedRoute.VIDEO
            summary = "flagged for visual confirmation"
    else:
        route = RecommendedRoute.INSTANT
        determinants = dict(results)
        summary = "ready to quote instantly"

    # Highest-confidence determinant names the reason; max() keeps input order on ties
    dominant_id = max(determinants, key=lambda job_id: determinants[job_id].confidence)
    confidence = min(r.confidence for r in determinants.values())

    recommendation = OverallRecommendation(
        route=route,
        reason=_build_reason(summary, len(determinants), dominant_id, determinants[dominant_id]),
        confidence=confidence,
        job_ids=list(determinants),
    )
    logger.info(f"Call route: {route.value.upper()} ({recommendation.reason}) confidence {confidence}")
    return recommendation
