"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from anchor.compaction import types as compaction_types


class CompactionConfig(BaseModel):
    """Context compaction configuration."""
    compact_threshold: int = Field(default=compaction_types.COMPACT_THRESHOLD, ge=0)
    keep_recent_count: int = Field(default=compaction_types.KEEP_RECENT_COUNT, ge=0)
    min_messages_to_compact: int = Field(default=compaction_types.MIN_MESSAGES_TO_COMPACT, ge=0)
    summary_timeout_seconds: float = Field(
        default=compaction_types.DEFAULT_SUMMARY_TIMEOUT_SECONDS, gt=0
    )
    summary_model: str | None = None  # Falls back to the chat model
    summary_max_tokens: int = 4096
    encoding: str = compaction_types.DEFAULT_ENCODING  # tiktoken encoding name

    def to_policy(self) -> compaction_types.CompactionConfig:
        """Runtime policy consumed by the compaction engine."""
        return compaction_types.CompactionConfig(
            compact_threshold=self.compact_threshold,
            keep_recent_count=self.keep_recent_count,
            min_messages_to_compact=self.min_messages_to_compact,
            summary_timeout_seconds=self.summary_timeout_seconds,
        )


class ProviderConfig(BaseModel):
    """OpenAI-compatible endpoint configuration."""
    api_key: str = ""
    endpoint_url: str = "https://api.openai.com/v1"
    timeout_seconds: float = 60.0


class ChatDefaults(BaseModel):
    """Default chat configuration."""
    model_config = ConfigDict(protected_namespaces=())

    model_name: str = "gpt-3.5-turbo"
    max_tokens: int = 4096
    temperature: float = 0.7
    compaction: CompactionConfig = Field(default_factory=CompactionConfig)


class Config(BaseSettings):
    """Root configuration for anchor."""
    chat: ChatDefaults = Field(default_factory=ChatDefaults)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)

    model_config = SettingsConfigDict(
        env_prefix="ANCHOR_",
        env_nested_delimiter="__",
    )

    @property
    def summary_model(self) -> str:
        """Model used for summarization calls."""
        return self.chat.compaction.summary_model or self.chat.model_name

    def get_api_key(self) -> str | None:
        """Get the endpoint API key, if configured."""
        return self.provider.api_key or None
