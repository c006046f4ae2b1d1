"""
Job Complexity Classifier - Two-tier job routing for live home-services calls.

Uses keyword signals for instant classification (Tier-1) and a completion
model for ambiguous jobs (Tier-2), then recommends one route per call.
"""

__version__ = "1.0.0"

from .config import (
    AppConfig,
    OpenAIConfig,
    ClaudeConfig,
    ClassifierConfig,
    AirtableConfig,
    Tier2Provider,
    load_config,
)
from .models import (
    TrafficLight,
    RecommendedRoute,
    JobInput,
    ClassificationResult,
    ClassificationOutput,
    OverallRecommendation,
)
from .signals import Signal, SignalTable, DEFAULT_SIGNAL_TABLE, load_signal_table
from .lexical_matcher import tier1_keyword_match
from .semantic_classifier import (
    SemanticClassifier,
    OpenAISemanticClassifier,
    ClaudeSemanticClassifier,
    Tier2DecodeError,
    create_semantic_classifier,
    decode_tier2_response,
)
from .orchestrator import JobComplexityClassifier
from .aggregator import EmptyJobSetError, get_overall_route_recommendation
from .classification_log import ClassificationLogger

__all__ = [
    # Config
    "AppConfig",
    "OpenAIConfig",
    "ClaudeConfig",
    "ClassifierConfig",
    "AirtableConfig",
    "Tier2Provider",
    "load_config",
    # Models
    "TrafficLight",
    "RecommendedRoute",
    "JobInput",
    "ClassificationResult",
    "ClassificationOutput",
    "OverallRecommendation",
    # Tier-1
    "Signal",
    "SignalTable",
    "DEFAULT_SIGNAL_TABLE",
    "load_signal_table",
    "tier1_keyword_match",
    # Tier-2
    "SemanticClassifier",
    "OpenAISemanticClassifier",
    "ClaudeSemanticClassifier",
    "Tier2DecodeError",
    "create_semantic_classifier",
    "decode_tier2_response",
    # Orchestration
    "JobComplexityClassifier",
    "EmptyJobSetError",
    "get_overall_route_recommendation",
    "ClassificationLogger",
]
