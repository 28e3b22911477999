"""Generation of the PR review agent prompt from an analysis report."""

import logging
from datetime import datetime, timezone
from typing import Optional

import anthropic

from .analyze.claude_client import send_message
from .config import get_prompt_max_tokens, get_prompt_model


def generate_review_prompt(client: anthropic.Anthropic, analysis_report: str, model: Optional[str] = None,
                           max_tokens: Optional[int] = None, include_attribution: bool = False) -> str:
    """Turn an analysis report into a markdown prompt for a PR review agent.

    Args:
        client: Anthropic client
        analysis_report: Markdown analysis report
        model: Model name (CLAUDE_MODEL_HEAVY or the default if None)
        max_tokens: Output token budget (CLAUDE_MAX_TOKENS or 8000 if None)
        include_attribution: Name the reviewers who emphasize each rule

    Returns:
        Generated prompt text

    Raises:
        LLMError: If the API call fails
    """
    model = model or get_prompt_model()
    max_tokens = max_tokens or get_prompt_max_tokens()

    logging.info(f"Generating review prompt with {model}")
    return send_message(client, build_prompt_generation_request(analysis_report, include_attribution), model, max_tokens)


def format_prompt_footer(details_path: str, model: str, generated_at: datetime = None) -> str:
    """Footer appended to the generated prompt file."""
    generated_at = generated_at or datetime.now(timezone.utc)
    return f"\n\n---\n\n*Generated: {generated_at.isoformat()}*\n*Source: {details_path}*\n*Model: {model}*"


def build_prompt_generation_request(analysis_report: str, include_attribution: bool) -> str:
    if include_attribution:
        attribution_instruction = ("Include which reviewers emphasize each rule/pattern "
                                   "(e.g., 'emphasized by: alice, bob').")
    else:
        attribution_instruction = "Do not include reviewer attribution - present rules as team-wide standards."

    return f"""You are an expert at creating AI agent system prompts. Your task is to transform a code review analysis report into a PR review agent prompt.

# Input: Analysis Report

The following is an analysis of code review patterns from senior engineers. It contains:
- Per-reviewer analysis with key practices and examples
- Cross-cutting themes that appear across multiple reviewers
- Recommendations for automation, documentation, and training

<analysis_report>
{analysis_report}
</analysis_report>

# Task

Generate a comprehensive PR review agent prompt that will guide an AI to enforce these patterns and practices when reviewing pull requests.

# Requirements

1. **Role Definition**: Start with a clear role definition for the PR review agent

2. **Core Principles**: Extract the 4-6 most important cross-cutting themes as core principles. Each should be:
   - A clear, actionable statement
   - Focused on the "why" not just the "what"

3. **Review Rules**: Organize rules into logical categories (Testing, Design System, Code Organization, etc.). Each rule should:
   - Be concise and actionable (checklist format)
   - Be specific enough to enforce consistently

4. **Code Examples**: Include concrete code examples showing:
   - What to avoid (bad pattern)
   - What to prefer (good pattern)
   - Use collapsible <details> blocks to keep the prompt scannable
   - Include the most instructive examples from the analysis

5. **Response Format**: Include instructions for how the agent should format its review comments. The format should focus ONLY on issues found - no praise sections.

6. **No Praise**: The agent should focus ONLY on identifying issues. The generated prompt must NOT include:
   - Instructions to compliment or praise the PR author
   - "Praise" or "What's done well" sections
   - Acknowledgment of good patterns or positive reinforcement
   Focus exclusively on what needs to be fixed or improved.

7. **Inline Code Suggestions**: For simple issues with straightforward fixes (1-2 lines of code), the agent should include concrete code suggestions using GitHub's suggestion format:
   ```suggestion
   // corrected code here
   ```
   Only provide suggestions for clear, mechanical fixes - not for architectural decisions or complex refactors.

8. {attribution_instruction}

# Output Format

Output ONLY the markdown content for the PR review agent prompt. Do not include any preamble or explanation - just the prompt itself.

The prompt should be:
- Well-structured with clear headers
- Comprehensive but not overwhelming (aim for ~100-150 lines)
- Immediately usable in GitHub Actions, editor hooks, or other AI review tools"""
