"""
Main entry point for the Job Complexity Classifier service.
Configures logging, keeps the recent call history and starts the call-handling API.
"""

import logging
import sys
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .config import load_config

logger = logging.getLogger(__name__)


@dataclass
class ProcessedCall:
    """Record of a classified call for dashboard display."""
    call_id: str
    timestamp: datetime
    job_count: int
    tier2_jobs: int
    route: str
    confidence: int
    reason: str

    def to_dict(self) -> dict:
        return {
            "call_id": self.call_id,
            "timestamp": self.timestamp.isoformat(),
            "job_count": self.job_count,
            "tier2_jobs": self.tier2_jobs,
            "route": self.route,
            "confidence": self.confidence,
            "reason": self.reason,
        }


class CallHistory:
    """Thread-safe history of classified calls."""

    def __init__(self, max_size: int = 100):
        self.max_size = max_size
        self._history: list[ProcessedCall] = []
        self._lock = threading.Lock()

    def add(self, call: ProcessedCall) -> None:
        with self._lock:
            self._history.insert(0, call)
            if len(self._history) > self.max_size:
                self._history = self._history[:self.max_size]

    def get_recent(self, limit: int = 20) -> list[ProcessedCall]:
        with self._lock:
            return self._history[:limit].copy()

    def get_stats(self) -> dict:
        with self._lock:
            routes = [c.route for c in self._history]
            return {
                "total_calls": len(self._history),
                "instant": routes.count("instant"),
                "video": routes.count("video"),
                "visit": routes.count("visit"),
                "refer": routes.count("refer"),
                "tier2_jobs": sum(c.tier2_jobs for c in self._history),
            }

    def clear(self) -> None:
        with self._lock:
            self._history = []


# Global history for dashboard access
call_history = CallHistory()


def setup_logging(log_dir: str, debug: bool = False) -> None:
    """Configure logging."""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    log_level = logging.DEBUG if debug else logging.INFO

    # File handler
    file_handler = logging.FileHandler(
        log_path / "classifier.log",
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    ))

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    from .api import run_api

    # Load configuration
    config = load_config()

    # Setup logging
    setup_logging(config.log_dir, config.debug_mode)

    logger.info("=" * 60)
    logger.info("Job Complexity Classifier Starting")
    logger.info("=" * 60)

    # Validate configuration
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        sys.exit(1)

    if config.classifier.tier2_enabled:
        logger.info(f"Tier-2 provider: {config.classifier.tier2_provider.value} "
                    f"(timeout {config.classifier.tier2_timeout_seconds}s, "
                    f"escalation below {config.classifier.escalation_threshold})")
    else:
        logger.info("Tier-2 disabled - lexical classification only")

    if not config.airtable.enabled:
        logger.info("Classification log: SKIPPED (Airtable not configured)")

    try:
        run_api(config)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    logger.info("Job Complexity Classifier Stopped")


if __name__ == "__main__":
    main()
