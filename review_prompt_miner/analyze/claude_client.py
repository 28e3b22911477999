"""Anthropic API access for the analysis and prompt generation steps."""

import os
import logging
from typing import Callable, List, Optional

import anthropic

from ..config import ENV_ANTHROPIC_API_KEY, get_analysis_max_tokens, get_analyze_model
from ..errors import ConfigurationError, LLMError, TokenLimitError
from ..models import ReviewerGroup
from .prompt_builder import build_analysis_prompt


TOKEN_LIMIT_MARKER = 'prompt is too long'


def create_claude_client(api_key: str = None) -> anthropic.Anthropic:
    """Create an Anthropic client.

    Args:
        api_key: API key (falls back to ANTHROPIC_API_KEY)

    Raises:
        ConfigurationError: If no API key is available
    """
    api_key = api_key or os.environ.get(ENV_ANTHROPIC_API_KEY)
    if not api_key:
        raise ConfigurationError(
            "ANTHROPIC_API_KEY environment variable is required.",
            suggestion="Get your API key from: https://console.anthropic.com/"
        )
    return anthropic.Anthropic(api_key=api_key)


def is_token_limit_error(error: Exception) -> bool:
    """Check if an API error was caused by a prompt exceeding the context window."""
    if isinstance(error, TokenLimitError):
        return True
    if isinstance(error, anthropic.APIError):
        return TOKEN_LIMIT_MARKER in str(error.message)
    return False


def describe_api_error(error: anthropic.APIError) -> str:
    """Map an Anthropic API error to a user-facing message by status code."""
    status_code = getattr(error, 'status_code', None)
    if status_code == 429:
        return "Rate limit reached. Please wait and try again."
    if status_code == 401:
        return "Invalid API key. Check ANTHROPIC_API_KEY."
    if status_code is None:
        return f"Anthropic API error: {error.message}"
    return f"Anthropic API error ({status_code}): {error.message}"


def send_message(client: anthropic.Anthropic, prompt: str, model: str, max_tokens: int) -> str:
    """Send a single-turn prompt and return the text of the reply.

    Raises:
        TokenLimitError: If the prompt is too long for the model
        LLMError: For any other API failure or a reply without text
    """
    try:
        response = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            messages=[
                {"role": "user", "content": prompt}
            ]
        )
    except anthropic.APIError as e:
        status_code = getattr(e, 'status_code', None)
        if is_token_limit_error(e):
            raise TokenLimitError(str(e.message), status_code=status_code) from e
        message = describe_api_error(e)
        logging.error(message)
        raise LLMError(message, status_code=status_code) from e

    for block in response.content:
        if getattr(block, 'type', None) == 'text':
            return block.text

    raise LLMError("No text content in Claude response")


def analyze_reviews(client: anthropic.Anthropic, reviewer_groups: List[ReviewerGroup],
                    prompt_builder: Callable[[List[ReviewerGroup]], str] = build_analysis_prompt,
                    model: Optional[str] = None, max_tokens: Optional[int] = None) -> str:
    """Ask the model for a markdown analysis of the reviewers' comments.

    Args:
        client: Anthropic client
        reviewer_groups: Comments grouped by reviewer
        prompt_builder: Builds the prompt from the groups
        model: Model name (CLAUDE_MODEL or the default if None)
        max_tokens: Output token budget (at least 16000 by default)

    Returns:
        Analysis text

    Raises:
        TokenLimitError: If the prompt is too long for the model
        LLMError: For any other API failure
    """
    model = model or get_analyze_model()
    max_tokens = max_tokens or get_analysis_max_tokens()

    prompt = prompt_builder(reviewer_groups)
    logging.debug(f"Sending analysis prompt to {model} ({len(prompt):,} characters)")

    return send_message(client, prompt, model, max_tokens)
