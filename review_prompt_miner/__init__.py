"""Review Prompt Miner - Builds PR review agent prompts from an organization's review history."""

from .models import UserActivity, ReviewCommentDetail, FetchWindow, FetchResult
from .api_client import GitHubAPIClient
from .bot_filter import BotFilter
from .config import PipelineConfig
from .pipeline import ReviewPromptPipeline
from .output import OutputFormatter

__all__ = [
    'UserActivity',
    'ReviewCommentDetail',
    'FetchWindow',
    'FetchResult',
    'GitHubAPIClient',
    'BotFilter',
    'PipelineConfig',
    'ReviewPromptPipeline',
    'OutputFormatter',
]
