"""Centralised settings for the PageFeed service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

AI providers
------------
Each provider reads its credential from ``<NAME>_API_KEY``; the endpoint and
model can be overridden with ``<NAME>_ENDPOINT`` / ``<NAME>_MODEL``.  A
provider without a key stays in the table (so the name is still accepted by
request validation) but fails with a configuration error when used.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass(frozen=True)
class ProviderConfig:
    """Connection details for one chat-completion style AI backend."""

    name: str
    endpoint: str
    model: str
    api_key: str = ""

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)


# name -> (default endpoint, default model)
_PROVIDER_DEFAULTS: dict[str, tuple[str, str]] = {
    "openai": ("https://api.openai.com/v1/chat/completions", "gpt-4o-mini"),
    "claude": ("https://api.anthropic.com/v1/chat/completions", "claude-3-5-haiku-latest"),
    "zhipu": ("https://open.bigmodel.cn/api/paas/v4/chat/completions", "glm-4-flash-250414"),
    "xunfei": (
        "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/chat/completions_tool",
        "xunfei-chat-pro",
    ),
}


def load_providers() -> dict[str, ProviderConfig]:
    """Build the provider table from the environment."""
    providers: dict[str, ProviderConfig] = {}
    for name, (endpoint, model) in _PROVIDER_DEFAULTS.items():
        prefix = name.upper()
        providers[name] = ProviderConfig(
            name=name,
            endpoint=os.environ.get(f"{prefix}_ENDPOINT", endpoint),
            model=os.environ.get(f"{prefix}_MODEL", model),
            api_key=os.environ.get(f"{prefix}_API_KEY", ""),
        )
    return providers


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Page fetching
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "10.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT", "Mozilla/5.0 (compatible; WebAnalyzer/1.0)"
        )
    )

    # ------------------------------------------------------------------
    # Result cache / rate limiting
    # ------------------------------------------------------------------
    cache_ttl: float = field(
        default_factory=lambda: float(os.environ.get("CACHE_TTL", "300"))
    )
    rate_limit_max: int = field(
        default_factory=lambda: int(os.environ.get("RATE_LIMIT_MAX", "100"))
    )
    rate_limit_window: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_WINDOW", "60"))
    )
    housekeeping_interval: float = field(
        default_factory=lambda: float(os.environ.get("HOUSEKEEPING_INTERVAL", "60"))
    )

    # ------------------------------------------------------------------
    # AI providers
    # ------------------------------------------------------------------
    providers: dict[str, ProviderConfig] = field(default_factory=load_providers)
    ai_timeout: float = field(
        default_factory=lambda: float(os.environ.get("AI_TIMEOUT", "60.0"))
    )
    ai_max_content_chars: int = field(
        default_factory=lambda: int(os.environ.get("AI_MAX_CONTENT_CHARS", "100000"))
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    host: str = field(default_factory=lambda: os.environ.get("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO"))

    @property
    def provider_names(self) -> list[str]:
        """Names accepted as the ``ai`` request parameter (besides ``auto``)."""
        return list(self.providers)


# Module-level singleton used by the entry points (app factory, CLI).
# Library code receives a Settings instance explicitly.
settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Root logging setup for the entry points (CLI, ``serve``)."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
