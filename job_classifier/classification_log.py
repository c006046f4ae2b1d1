"""
Classification Log Module.
Logs call-level routing decisions to Airtable for accuracy tracking and
keyword tuning. Failures here never block the call flow.
"""

import logging
from datetime import datetime
from typing import Mapping, Optional, Sequence

from pyairtable import Api

from .config import AirtableConfig
from .models import ClassificationResult, JobInput, OverallRecommendation

logger = logging.getLogger(__name__)


class ClassificationLogger:
    """Logs routing decisions to the Airtable Classification_Log table."""

    def __init__(self, config: AirtableConfig):
        self.config = config
        self._api: Optional[Api] = None
        self._table = None

    @property
    def api(self) -> Api:
        """Lazy-load Airtable API client."""
        if self._api is None:
            self._api = Api(self.config.api_key)
        return self._api

    @property
    def table(self):
        """Get the Classification_Log table."""
        if self._table is None:
            if not self.config.enabled:
                logger.warning("Classification_Log table not configured")
                return None
            self._table = self.api.table(
                self.config.base_id,
                self.config.classification_log_table_id
            )
        return self._table

    def log_call(
        self,
        call_id: str,
        results: Mapping[str, ClassificationResult],
        recommendation: OverallRecommendation,
        jobs: Optional[Sequence[JobInput]] = None,
    ) -> Optional[str]:
        """
        Log a call's routing decision.

        Returns the record ID if successful, None otherwise.
        """
        if not self.table:
            return None

        try:
            record = {
                "Call_ID": call_id,
                "Timestamp": datetime.now().isoformat(),
                "Job_Count": len(results),
                "Tier2_Jobs": sum(1 for r in results.values() if r.tier == 2),
                "Recommended_Route": recommendation.route.value,
                "Route_Confidence": recommendation.confidence,
                "Reason": recommendation.reason,
                "Classification_Details": self._build_details(results, jobs),
            }

            created = self.table.create(record)
            record_id = created.get('id')

            logger.info(f"Logged routing decision for call {call_id}: {recommendation.route.value} (Record: {record_id})")
            return record_id

        except Exception as e:
            logger.error(f"Failed to log routing decision for call {call_id}: {e}")
            return None

    def _build_details(
        self,
        results: Mapping[str, ClassificationResult],
        jobs: Optional[Sequence[JobInput]] = None,
    ) -> str:
        """Build a per-job summary for the log."""
        details = []
        skus = {job.id: job for job in jobs or () if job.sku_id or job.sku_name}

        for job_id, result in results.items():
            details.append(f"=== JOB {job_id} (TIER-{result.tier}) ===")
            if job_id in skus:
                sku = skus[job_id]
                details.append(f"SKU: {sku.sku_name or '-'} ({sku.sku_id or 'no id'})")
            details.append(f"Traffic Light: {result.traffic_light.value.upper()}")
            details.append(f"Route: {result.recommended_route.value}")
            details.append(f"Confidence: {result.confidence}%")
            if result.complexity_score is not None:
                details.append(f"Complexity: {result.complexity_score}/10")
            if result.needs_specialist:
                details.append("Specialist: YES")
            if result.signals:
                details.append("Signals:")
                for signal in result.signals:
                    details.append(f"  - {signal}")
            if result.reasoning:
                details.append(f"Reasoning: {result.reasoning}")
            details.append("")

        return "\n".join(details).rstrip()

    def get_recent_logs(self, limit: int = 20) -> list[dict]:
        """Get recent log entries for dashboard display."""
        if not self.table:
            return []

        try:
            records = self.table.all(
                sort=["-Timestamp"],
                max_records=limit
            )
            return [r['fields'] for r in records]
        except Exception as e:
            logger.error(f"Failed to get recent logs: {e}")
            return []

    def get_accuracy_stats(self) -> dict:
        """
        Compare Recommended_Route with Actual_Route (filled in after the job).
        """
        if not self.table:
            return {"error": "Table not configured"}

        try:
            records = self.table.all(
                formula="{Actual_Route} != ''"
            )

            if not records:
                return {
                    "total_evaluated": 0,
                    "message": "No records with actual routes yet"
                }

            total = len(records)
            correct = 0
            per_route: dict[str, dict[str, int]] = {}

            for record in records:
                fields = record['fields']
                recommended = fields.get('Recommended_Route', '')
                actual = fields.get('Actual_Route', '')

                counts = per_route.setdefault(recommended, {"correct": 0, "total": 0})
                counts["total"] += 1
                if recommended == actual:
                    correct += 1
                    counts["correct"] += 1

            return {
                "total_evaluated": total,
                "overall_accuracy": round(correct / total * 100, 1),
                "route_accuracy": {
                    route: round(c["correct"] / c["total"] * 100, 1)
                    for route, c in per_route.items()
                },
            }

        except Exception as e:
            logger.error(f"Failed to calculate accuracy stats: {e}")
            return {"error": str(e)}
