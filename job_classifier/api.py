"""
Flask call-handling API for the Job Complexity Classifier.
Serves per-job traffic lights and the call-level route button to the call UI.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from .aggregator import get_overall_route_recommendation
from .classification_log import ClassificationLogger
from .config import AppConfig, load_config
from .main import ProcessedCall, call_history
from .models import ClassificationResult, JobInput
from .orchestrator import JobComplexityClassifier

logger = logging.getLogger(__name__)

app = Flask(__name__)


def _classifier() -> JobComplexityClassifier:
    """Classifier for this app, built from the environment on first use."""
    if "CLASSIFIER" not in app.config:
        app.config["CLASSIFIER"] = JobComplexityClassifier.from_config(load_config())
    return app.config["CLASSIFIER"]


def _classification_logger() -> Optional[ClassificationLogger]:
    if "CLASSIFICATION_LOGGER" not in app.config:
        airtable = load_config().airtable
        app.config["CLASSIFICATION_LOGGER"] = ClassificationLogger(airtable) if airtable.enabled else None
    return app.config["CLASSIFICATION_LOGGER"]


def _error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _parse_flag(data: dict, key: str, label: str) -> Optional[bool]:
    """Read an optional JSON boolean; strings such as "false" are rejected."""
    value = data.get(key)
    if value is not None and not isinstance(value, bool):
        raise ValueError(f"{label} must be a boolean")
    return value


def _parse_sku_field(job: dict, key: str, index: int) -> Optional[str]:
    value = job.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"job {index} {key} must be a string")
    return value


def _parse_jobs(payload: dict) -> list[JobInput]:
    jobs = payload.get("jobs")
    if not isinstance(jobs, list):
        raise ValueError("jobs must be a list")

    parsed = []
    for index, job in enumerate(jobs, 1):
        if not isinstance(job, dict) or not isinstance(job.get("description"), str):
            raise ValueError(f"job {index} must be an object with a description")
        parsed.append(JobInput(
            id=str(job.get("id", index)),
            description=job["description"],
            matched=_parse_flag(job, "matched", f"job {index} matched") or False,
            sku_id=_parse_sku_field(job, "sku_id", index),
            sku_name=_parse_sku_field(job, "sku_name", index),
        ))
    return parsed


def _job_payload(job: JobInput, result: ClassificationResult) -> dict:
    payload = result.to_dict()
    if job.sku_id is not None:
        payload["sku_id"] = job.sku_id
    if job.sku_name is not None:
        payload["sku_name"] = job.sku_name
    return payload


@app.route('/api/classify', methods=['POST'])
def classify_job():
    """Classify a single job description."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not isinstance(payload.get("description"), str):
        return _error("Request body must be a JSON object with a description")

    try:
        matched = _parse_flag(payload, "matched", "matched") or False
        use_tier2 = _parse_flag(payload, "use_tier2", "use_tier2")
    except ValueError as e:
        return _error(str(e))

    output = asyncio.run(_classifier().classify_job_complexity(
        payload["description"],
        matched,
        use_tier2=use_tier2,
    ))
    return jsonify(output.to_dict())


@app.route('/api/calls/classify', methods=['POST'])
def classify_call():
    """Classify every job in a call and recommend one route for the call."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error("Request body must be a JSON object")

    try:
        jobs = _parse_jobs(payload)
        use_tier2 = _parse_flag(payload, "use_tier2", "use_tier2")
        results = asyncio.run(_classifier().classify_multiple_jobs(jobs, use_tier2=use_tier2))
        recommendation = get_overall_route_recommendation(results)
    except ValueError as e:
        logger.warning(f"Rejected call classification request: {e}")
        return _error(str(e))

    call_id = str(payload.get("call_id") or uuid.uuid4().hex[:12])
    call_history.add(ProcessedCall(
        call_id=call_id,
        timestamp=datetime.now(),
        job_count=len(results),
        tier2_jobs=sum(1 for r in results.values() if r.tier == 2),
        route=recommendation.route.value,
        confidence=recommendation.confidence,
        reason=recommendation.reason,
    ))

    classification_logger = _classification_logger()
    if classification_logger:
        classification_logger.log_call(call_id, results, recommendation, jobs)

    return jsonify({
        "call_id": call_id,
        "results": {job.id: _job_payload(job, results[job.id]) for job in jobs},
        "recommendation": recommendation.to_dict(),
    })


@app.route('/api/calls/recent')
def get_recent_calls():
    """API endpoint for recently classified calls."""
    limit = request.args.get("limit", default=20, type=int)
    return jsonify([c.to_dict() for c in call_history.get_recent(limit)])


@app.route('/api/stats')
def get_stats():
    """API endpoint for routing statistics."""
    stats = call_history.get_stats()
    stats["last_updated"] = datetime.now().isoformat()
    return jsonify(stats)


@app.route('/api/logs/recent')
def get_recent_logs():
    """API endpoint for recent Airtable classification log entries."""
    classification_logger = _classification_logger()
    if not classification_logger:
        return _error("Classification log not configured", 503)
    limit = request.args.get("limit", default=20, type=int)
    return jsonify(classification_logger.get_recent_logs(limit))


@app.route('/api/accuracy')
def get_accuracy():
    """API endpoint comparing recommended routes with the routes jobs actually took."""
    classification_logger = _classification_logger()
    if not classification_logger:
        return _error("Classification log not configured", 503)
    return jsonify(classification_logger.get_accuracy_stats())


@app.route('/health')
def health():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "timestamp": datetime.now().isoformat()})


def run_api(config: AppConfig) -> None:
    """Run the API server."""
    app.config["CLASSIFIER"] = JobComplexityClassifier.from_config(config)
    app.config["CLASSIFICATION_LOGGER"] = ClassificationLogger(config.airtable) if config.airtable.enabled else None

    logger.info(f"Starting call-handling API on http://{config.api_host}:{config.api_port}")
    app.run(host=config.api_host, port=config.api_port, debug=False, threaded=True)


if __name__ == "__main__":
    run_api(load_config())
