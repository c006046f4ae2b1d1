"""
Tier-2 Semantic Job Classifier.
Asks a completion model to judge jobs that keyword matching cannot settle
(e.g. "bit of mould" vs "mould spreading across entire wall").

One attempt per job, bounded by a timeout. Any failure returns None so the
caller keeps its Tier-1 result.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Literal, Optional

import anthropic
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config import AppConfig, ClaudeConfig, OpenAIConfig, Tier2Provider
from .models import ClassificationResult, RecommendedRoute, TrafficLight

logger = logging.getLogger(__name__)

# Used when the model returns a well-formed judgment without a confidence
DEFAULT_TIER2_CONFIDENCE = 85


COMPLEXITY_PROMPT = """You are classifying a home-services handyman job for routing while the customer is on the phone.
Analyze the job description and determine:

1. TRAFFIC LIGHT:
   - green: Simple, bounded job. Can be quoted instantly from a standard price list.
   - amber: Needs video/photos to assess properly. Likely quotable after seeing it.
   - red: Complex or specialist work. Needs a site visit or specialist referral.

2. RECOMMENDED ROUTE:
   - instant: Give a price now (green jobs)
   - video: Request a video for assessment (amber jobs)
   - visit: Book a diagnostic visit (complex jobs that video cannot resolve)
   - refer: Refer to a specialist (jobs requiring licensed trades)

3. COMPLEXITY SCORE (0-10):
   - 0-3: Simple, routine handyman tasks
   - 4-6: Moderate, may need assessment
   - 7-8: Complex, multi-step or technical
   - 9-10: Specialist trade required

4. SPECIALIST NEEDED:
   - true: Requires a licensed contractor (gas, major electrical, structural)
   - false: Within general handyman scope

ALWAYS RED:
- Gas work (boilers, pipes, cookers, hobs)
- Full rewiring, consumer units or new circuits
- Structural work or structural cracks (load bearing walls, foundations, subsidence)
- Asbestos or other hazardous materials
- Roofing and chimneys
- Serious damp (rising/penetrating damp, walls wet to the touch)

AMBER (needs visual confirmation):
- Leaks and water damage (could be a minor tap or a burst pipe)
- Damp or mould of unknown extent
- Unspecified damage or "not sure what's wrong"
- Several vague jobs in one description

Respond with a JSON object only (no markdown):
{
    "trafficLight": "green" | "amber" | "red",
    "recommendedRoute": "instant" | "video" | "visit" | "refer",
    "complexityScore": <0-10>,
    "needsSpecialist": true | false,
    "confidence": <0-100>,
    "signals": ["<short phrases from the description that drove the decision>"],
    "reasoning": "<one sentence>"
}

Be conservative. Never choose green for work that may need a licensed specialist."""


class Tier2DecodeError(ValueError):
    """Raised when a Tier-2 response cannot be trusted as a classification."""


class Tier2Judgment(BaseModel):
    """Validated shape of a Tier-2 model response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    traffic_light: Literal["green", "amber", "red"] = Field(alias="trafficLight")
    recommended_route: Literal["instant", "video", "visit", "refer"] = Field(alias="recommendedRoute")
    complexity_score: int = Field(alias="complexityScore", ge=0, le=10)
    needs_specialist: bool = Field(alias="needsSpecialist")
    reasoning: str
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    signals: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_consistency(self) -> "Tier2Judgment":
        if self.traffic_light == "green":
            if self.needs_specialist or self.recommended_route != "instant":
                raise ValueError("a green judgment must be an instant quote without a specialist")
        elif self.recommended_route == "instant":
            raise ValueError(f"a {self.traffic_light} judgment cannot be quoted instantly")
        if self.recommended_route == "refer" and not (self.traffic_light == "red" or self.needs_specialist):
            raise ValueError("a referral needs a red light or a specialist flag")
        return self

    def to_result(self) -> ClassificationResult:
        return ClassificationResult(
            traffic_light=TrafficLight(self.traffic_light),
            recommended_route=RecommendedRoute(self.recommended_route),
            confidence=self.confidence if self.confidence is not None else DEFAULT_TIER2_CONFIDENCE,
            tier=2,
            signals=[f"llm: {s}" for s in self.signals],
            complexity_score=self.complexity_score,
            needs_specialist=self.needs_specialist,
            reasoning=self.reasoning,
        )


def decode_tier2_response(raw_response: str) -> Tier2Judgment:
    """Parse and validate a raw model response.

    Raises:
        Tier2DecodeError: If the response is not valid JSON or fails validation
    """
    # Clean up response (remove markdown code blocks if present)
    cleaned = raw_response.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
    if cleaned.endswith("```"):
        cleaned = cleaned.rsplit("```", 1)[0]
    cleaned = cleaned.strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise Tier2DecodeError(f"response was not valid JSON: {e}") from e

    try:
        return Tier2Judgment.model_validate(data)
    except ValidationError as e:
        raise Tier2DecodeError(f"response failed validation: {e.error_count()} error(s)") from e


class SemanticClassifier(ABC):
    """Tier-2 classification against a completion endpoint."""

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def _create_client(self):
        """Build an async API client. It is closed once the request finishes."""
        ...

    @abstractmethod
    async def _complete(self, client, description: str) -> Optional[str]:
        """Send one completion request and return the raw text content."""
        ...

    async def classify(self, description: str) -> Optional[ClassificationResult]:
        """Classify a job description. Returns None if Tier-2 is unavailable."""
        start = time.perf_counter()

        # Each call owns its client: Flask views run every request on a fresh event loop
        client = self._create_client()
        try:
            raw_response = await asyncio.wait_for(
                self._complete(client, description), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            elapsed = (time.perf_counter() - start) * 1000
            logger.warning(f"[Tier2] TIMEOUT after {elapsed:.1f}ms - keeping Tier-1 classification")
            return None
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            logger.error(f"[Tier2] {self.name} request failed after {elapsed:.1f}ms: {e}")
            return None
        finally:
            await client.close()

        if not raw_response:
            logger.warning("[Tier2] No content in model response")
            return None

        try:
            judgment = decode_tier2_response(raw_response)
        except Tier2DecodeError as e:
            logger.warning(f"[Tier2] Discarding malformed response: {e}")
            logger.debug(f"Raw response: {raw_response}")
            return None

        result = judgment.to_result()
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            f"[Tier2] {result.traffic_light.value.upper()} ({result.recommended_route.value}, "
            f"complexity {result.complexity_score}) in {elapsed:.1f}ms"
        )
        return result


class OpenAISemanticClassifier(SemanticClassifier):
    """Tier-2 classification using OpenAI chat completions in JSON mode."""

    def __init__(self, config: OpenAIConfig, timeout_seconds: float = 5.0):
        super().__init__(timeout_seconds)
        self.config = config

    def _create_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self.config.api_key or None,
            timeout=self.timeout_seconds,
            max_retries=0,
        )

    async def _complete(self, client, description: str) -> Optional[str]:
        response = await client.chat.completions.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": COMPLEXITY_PROMPT},
                {"role": "user", "content": description},
            ],
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


class ClaudeSemanticClassifier(SemanticClassifier):
    """Tier-2 classification using Anthropic Claude."""

    def __init__(self, config: ClaudeConfig, timeout_seconds: float = 5.0):
        super().__init__(timeout_seconds)
        self.config = config

    def _create_client(self) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(
            api_key=self.config.api_key or None,
            timeout=self.timeout_seconds,
            max_retries=0,
        )

    async def _complete(self, client, description: str) -> Optional[str]:
        message = await client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            system=COMPLEXITY_PROMPT,
            messages=[{"role": "user", "content": description}],
        )
        if not message.content:
            return None
        return message.content[0].text


def create_semantic_classifier(config: AppConfig) -> SemanticClassifier:
    """Build the Tier-2 classifier for the configured provider."""
    timeout = config.classifier.tier2_timeout_seconds
    if config.classifier.tier2_provider == Tier2Provider.ANTHROPIC:
        return ClaudeSemanticClassifier(config.claude, timeout)
    return OpenAISemanticClassifier(config.openai, timeout)
