"""Review pattern analysis with Claude."""

from .claude_client import analyze_reviews, create_claude_client, is_token_limit_error
from .json_parser import (
    InputFormat,
    ParsedInput,
    detect_input_format,
    group_by_reviewer,
    limit_comments_per_reviewer,
    parse_input_json,
)
from .prompt_builder import build_analysis_prompt, estimate_token_count
from .report_formatter import ReportMetadata, format_markdown_report
from .token_budget import TokenBudgetController

__all__ = [
    'analyze_reviews',
    'create_claude_client',
    'is_token_limit_error',
    'InputFormat',
    'ParsedInput',
    'detect_input_format',
    'group_by_reviewer',
    'limit_comments_per_reviewer',
    'parse_input_json',
    'build_analysis_prompt',
    'estimate_token_count',
    'ReportMetadata',
    'format_markdown_report',
    'TokenBudgetController',
]
