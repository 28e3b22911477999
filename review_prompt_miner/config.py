"""Configuration defaults, environment handling and pipeline settings."""

import os
import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from .models import FetchMode, FetchWindow


# --- Models ---
DEFAULT_ANALYZE_MODEL = 'claude-sonnet-4-5-20250929'
DEFAULT_PROMPT_MODEL = 'claude-opus-4-5-20251101'
DEFAULT_MAX_TOKENS = 8000
MIN_ANALYSIS_MAX_TOKENS = 16000  # analysis output is long

# --- Environment ---
ENV_GITHUB_TOKEN = 'GITHUB_TOKEN'
ENV_ANTHROPIC_API_KEY = 'ANTHROPIC_API_KEY'
ENV_ANALYZE_MODEL = 'CLAUDE_MODEL'
ENV_PROMPT_MODEL = 'CLAUDE_MODEL_HEAVY'
ENV_MAX_TOKENS = 'CLAUDE_MAX_TOKENS'

# --- Pipeline defaults ---
DEFAULT_TOP = 5
DEFAULT_SINCE_MONTHS = 3
DEFAULT_OUTPUT_PATH = './pr-review-prompt.md'


def get_int_env(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logging.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default
    if parsed < 1:
        logging.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default
    return parsed


def get_analyze_model() -> str:
    return os.environ.get(ENV_ANALYZE_MODEL) or DEFAULT_ANALYZE_MODEL


def get_prompt_model() -> str:
    return os.environ.get(ENV_PROMPT_MODEL) or DEFAULT_PROMPT_MODEL


def get_analysis_max_tokens() -> int:
    return max(get_int_env(ENV_MAX_TOKENS, DEFAULT_MAX_TOKENS), MIN_ANALYSIS_MAX_TOKENS)


def get_prompt_max_tokens() -> int:
    return get_int_env(ENV_MAX_TOKENS, DEFAULT_MAX_TOKENS)


def months_ago(months: int, now: Optional[datetime] = None) -> datetime:
    """Return the UTC time the given number of calendar months before now."""
    now = now or datetime.now(timezone.utc)
    return now - relativedelta(months=months)


def parse_date(value: str) -> datetime:
    """Parse a YYYY-MM-DD date (or full ISO timestamp) as an aware UTC datetime.

    Raises:
        ValueError: If the value is not a valid date
    """
    parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class PipelineConfig:
    """Settings for one build-prompt run."""
    org: str
    window: FetchWindow
    repos: Optional[List[str]] = None
    top: int = DEFAULT_TOP
    output_path: str = DEFAULT_OUTPUT_PATH
    max_comments: Optional[int] = None
    analyze_model: str = DEFAULT_ANALYZE_MODEL
    prompt_model: str = DEFAULT_PROMPT_MODEL
    include_attribution: bool = False

    def __post_init__(self):
        if self.top < 1:
            raise ValueError(f"top must be positive, got {self.top}")
        if self.max_comments is not None and self.max_comments < 1:
            raise ValueError(f"max_comments must be positive, got {self.max_comments}")

    @property
    def output_base(self) -> str:
        return re.sub(r'\.md$', '', self.output_path)

    @property
    def details_path(self) -> str:
        return f"{self.output_base}-details.json"

    @property
    def analysis_path(self) -> str:
        return f"{self.output_base}-analysis.md"

    @property
    def since_str(self) -> Optional[str]:
        if self.window.mode is FetchMode.SINCE:
            return self.window.since.strftime('%Y-%m-%d')
        return None
