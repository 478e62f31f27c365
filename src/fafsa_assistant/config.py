import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (conversation and progress stores)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    key_prefix: str = os.getenv("KEY_PREFIX", "fafsa")

    # Generation backend
    generation_provider: str = os.getenv("GENERATION_PROVIDER", "ollama")  # or "bedrock"
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    generation_model: str = os.getenv("GENERATION_MODEL", "llama3.1")
    generation_max_tokens: int = int(os.getenv("GENERATION_MAX_TOKENS", "1000"))

    # AWS / Bedrock
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    bedrock_model_id: str = os.getenv("BEDROCK_MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0")

    # Knowledge base (directory of JSON documents)
    knowledge_base_dir: str | None = os.getenv("KNOWLEDGE_BASE_DIR")

    # Conversation persistence
    conversation_store: str = os.getenv("CONVERSATION_STORE", "memory")  # or "redis"
    conversation_ttl: int = int(os.getenv("CONVERSATION_TTL", "86400"))  # 24 hours

    # Response cache (seconds)
    cache_default_ttl: float = float(os.getenv("CACHE_DEFAULT_TTL", "1800"))  # 30 minutes
    cache_common_ttl: float = float(os.getenv("CACHE_COMMON_TTL", "7200"))  # 2 hours
    cache_preload_ttl: float = float(os.getenv("CACHE_PRELOAD_TTL", "14400"))  # 4 hours
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "1000"))
    cache_cleanup_interval: float = float(os.getenv("CACHE_CLEANUP_INTERVAL", "300"))  # 5 minutes
    cache_preload: bool = _env_bool("CACHE_PRELOAD", "true")

    # Retry / timeouts
    retry_max_attempts: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    retry_base_delay: float = float(os.getenv("RETRY_BASE_DELAY", "1.0"))
    retry_max_delay: float = float(os.getenv("RETRY_MAX_DELAY", "30.0"))
    retry_backoff_multiplier: float = float(os.getenv("RETRY_BACKOFF_MULTIPLIER", "2.0"))
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "30.0"))

    # Chat
    max_message_length: int = int(os.getenv("MAX_MESSAGE_LENGTH", "5000"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "true")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def uses_bedrock(self) -> bool:
        """Check if generation is served by Amazon Bedrock.

        Returns:
            True if Bedrock is the configured provider, False otherwise
        """
        return self.generation_provider.lower() == "bedrock"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.generation_provider.lower() not in ("ollama", "bedrock"):
            raise ValueError(
                f"GENERATION_PROVIDER must be 'ollama' or 'bedrock', got {self.generation_provider!r}"
            )

        if self.conversation_store.lower() not in ("memory", "redis"):
            raise ValueError(
                f"CONVERSATION_STORE must be 'memory' or 'redis', got {self.conversation_store!r}"
            )

        if self.retry_max_attempts < 1:
            raise ValueError("RETRY_MAX_ATTEMPTS must be at least 1")

        if self.cache_max_entries < 1:
            raise ValueError("CACHE_MAX_ENTRIES must be at least 1")

        if self.cache_default_ttl <= 0 or self.cache_common_ttl <= 0:
            raise ValueError("Cache TTLs must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create an asyncio Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
