"""
Source configuration.

Defaults describe the live AllNovel site. Every value can be overridden
through environment variables (see SourceConfig.from_env) so mirrors and
test servers can be targeted without code changes.
"""

import os

from pydantic import BaseModel, Field, field_validator

from .logger import get_module_logger

logger = get_module_logger("config")

DEFAULT_BASE_URL = "https://allnovel.org"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


class SourceConfig(BaseModel):
    """Tunables shared by the fetcher and every extractor."""
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = Field(default=30.0, gt=0)

    # Image query strings longer than this are dropped (opaque CDN tokens)
    image_query_max_length: int = Field(default=60, ge=0)
    # A description's first paragraph shorter than this replaces the full container text
    description_paragraph_max: int = Field(default=400, ge=0)
    # Content containers must carry more text than this to be accepted
    content_min_length: int = Field(default=10, ge=0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> "SourceConfig":
        """
        Build a config from ALLNOVEL_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        values = {}

        base_url = os.getenv("ALLNOVEL_BASE_URL")
        if base_url:
            values["base_url"] = base_url

        user_agent = os.getenv("ALLNOVEL_USER_AGENT")
        if user_agent:
            values["user_agent"] = user_agent

        timeout = os.getenv("ALLNOVEL_TIMEOUT")
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid ALLNOVEL_TIMEOUT '{timeout}'")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

