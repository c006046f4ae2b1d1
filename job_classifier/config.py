"""
Configuration management for the Job Complexity Classifier.
Loads settings from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Tier2Provider(Enum):
    """Completion provider used for Tier-2 classification."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class OpenAIConfig:
    """OpenAI API configuration for Tier-2 classification."""
    api_key: str = ""
    model: str = "gpt-4o-mini"
    max_tokens: int = 300
    temperature: float = 0.1

    @classmethod
    def from_env(cls) -> "OpenAIConfig":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY", ""),
            model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", "300")),
            temperature=float(os.getenv("OPENAI_TEMPERATURE", "0.1")),
        )


@dataclass
class ClaudeConfig:
    """Anthropic Claude API configuration for Tier-2 classification."""
    api_key: str = ""
    model: str = "claude-3-5-haiku-latest"
    max_tokens: int = 300
    temperature: float = 0.1

    @classmethod
    def from_env(cls) -> "ClaudeConfig":
        return cls(
            api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            model=os.getenv("CLAUDE_MODEL", "claude-3-5-haiku-latest"),
            max_tokens=int(os.getenv("CLAUDE_MAX_TOKENS", "300")),
            temperature=float(os.getenv("CLAUDE_TEMPERATURE", "0.1")),
        )


@dataclass
class ClassifierConfig:
    """Tiered classification settings."""
    escalation_threshold: int = 70     # Tier-1 confidence below this goes to Tier-2
    tier2_enabled: bool = True
    tier2_timeout_seconds: float = 5.0
    tier2_provider: Tier2Provider = Tier2Provider.OPENAI
    signals_file: str = ""             # Empty = built-in signal table

    @classmethod
    def from_env(cls) -> "ClassifierConfig":
        provider_str = os.getenv("TIER2_PROVIDER", "openai").lower()
        provider = Tier2Provider.ANTHROPIC if provider_str in ("anthropic", "claude") else Tier2Provider.OPENAI

        return cls(
            escalation_threshold=int(os.getenv("ESCALATION_THRESHOLD", "70")),
            tier2_enabled=os.getenv("TIER2_ENABLED", "true").lower() == "true",
            tier2_timeout_seconds=float(os.getenv("TIER2_TIMEOUT_SECONDS", "5")),
            tier2_provider=provider,
            signals_file=os.getenv("SIGNALS_FILE", ""),
        )


@dataclass
class AirtableConfig:
    """Airtable configuration for the optional classification log."""
    api_key: str = ""
    base_id: str = ""
    classification_log_table_id: str = ""

    @classmethod
    def from_env(cls) -> "AirtableConfig":
        return cls(
            api_key=os.getenv("AIRTABLE_API_KEY", ""),
            base_id=os.getenv("AIRTABLE_BASE_ID", ""),
            classification_log_table_id=os.getenv("AIRTABLE_CLASSIFICATION_LOG_TABLE_ID", ""),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.base_id and self.classification_log_table_id)


@dataclass
class AppConfig:
    """Main application configuration."""
    openai: OpenAIConfig
    claude: ClaudeConfig
    classifier: ClassifierConfig
    airtable: AirtableConfig

    # Application settings
    log_dir: str = "/var/log/job-classifier"
    api_host: str = "127.0.0.1"
    api_port: int = 8080
    debug_mode: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            openai=OpenAIConfig.from_env(),
            claude=ClaudeConfig.from_env(),
            classifier=ClassifierConfig.from_env(),
            airtable=AirtableConfig.from_env(),
            log_dir=os.getenv("LOG_DIR", "/var/log/job-classifier"),
            api_host=os.getenv("API_HOST", "127.0.0.1"),
            api_port=int(os.getenv("API_PORT", "8080")),
            debug_mode=os.getenv("DEBUG_MODE", "false").lower() == "true",
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not 0 <= self.classifier.escalation_threshold <= 100:
            errors.append("ESCALATION_THRESHOLD must be between 0 and 100")
        if self.classifier.tier2_timeout_seconds <= 0:
            errors.append("TIER2_TIMEOUT_SECONDS must be positive")

        if self.classifier.tier2_enabled:
            if self.classifier.tier2_provider == Tier2Provider.OPENAI and not self.openai.api_key:
                errors.append("OPENAI_API_KEY is required for Tier-2 classification (or set TIER2_ENABLED=false)")
            if self.classifier.tier2_provider == Tier2Provider.ANTHROPIC and not self.claude.api_key:
                errors.append("ANTHROPIC_API_KEY is required for Tier-2 classification (or set TIER2_ENABLED=false)")

        if self.classifier.signals_file and not Path(self.classifier.signals_file).exists():
            errors.append(f"SIGNALS_FILE not found: {self.classifier.signals_file}")

        return errors


def load_config() -> AppConfig:
    """Load configuration from environment variables."""
    # Try to load .env file if it exists
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        with open(env_file) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    os.environ.setdefault(key.strip(), value.strip().strip('"\''))

    return AppConfig.from_env()
