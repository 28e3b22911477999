"""Analysis prompt construction."""

import math
from typing import Dict, List

from ..models import ReviewCommentWithContext, ReviewerGroup


def estimate_token_count(text: str) -> int:
    """Estimate the token count of a prompt at roughly four characters per token."""
    return math.ceil(len(text) / 4)


def build_analysis_prompt(reviewer_groups: List[ReviewerGroup]) -> str:
    """Build the prompt asking the model to analyze review patterns per reviewer."""
    total_comments = sum(group.total_comments for group in reviewer_groups)
    reviewer_names = ', '.join(group.reviewer for group in reviewer_groups)

    return f"""You are analyzing code review feedback from senior engineers on a software team.

# Context
You have {total_comments} review comments from {len(reviewer_groups)} reviewer(s) across multiple repositories. Your goal is to identify:
1. What patterns and practices each reviewer emphasizes
2. What key principles they're trying to teach
3. Recurring themes across their feedback

# Data
{_format_reviewer_data(reviewer_groups)}

# Instructions
Analyze the review comments and produce a structured report with these sections:

## 1. Per-Reviewer Analysis
For each reviewer ({reviewer_names}):

### Key Practices
Identify 3-7 patterns in their feedback. For each pattern:
- **Name**: Short, descriptive title
- **Description**: What principle/practice they're emphasizing
- **Examples**: 2-3 concrete examples with code context and quotes

Examples of patterns to look for:
- Observability/instrumentation preferences
- Naming conventions
- Code organization principles
- Testing approaches
- Performance considerations
- Architectural guidance
- Error handling patterns

### Notable Repos
Identify which repositories have particularly instructive feedback and why.

## 2. Cross-Cutting Themes
Identify 2-4 themes that appear across multiple reviewers or are especially important

## 3. Recommendations
Based on the patterns, what could be:
- Automated (linters, CI checks)
- Documented (style guides, architectural docs)
- Taught (onboarding, examples)

# Output Format
Use clear markdown with headers, bullet points, and code snippets where relevant.
Keep it concise but specific - use actual quotes from the comments."""


def _format_reviewer_data(groups: List[ReviewerGroup]) -> str:
    output = ""

    for group in groups:
        output += f"\n## {group.reviewer} ({group.total_comments} comments)\n\n"

        for repo, comments in _group_comments_by_repo(group.comments).items():
            output += f"### Repository: {repo} ({len(comments)} comments)\n\n"
            for comment in comments:
                output += _format_comment(comment)
                output += "\n"
            output += "\n"

    return output


def _group_comments_by_repo(comments: List[ReviewCommentWithContext]) -> Dict[str, List[ReviewCommentWithContext]]:
    groups: Dict[str, List[ReviewCommentWithContext]] = {}
    for comment in comments:
        groups.setdefault(comment.repo, []).append(comment)
    return groups


def _format_comment(comment: ReviewCommentWithContext) -> str:
    formatted = f"> {comment.body}\n"

    if comment.pr:
        formatted += (f"\n**PR**: [#{comment.pr.number}]({comment.pr.url}) - "
                      f"{comment.pr.title} (by {comment.pr.author})\n")

    if comment.diff_hunk:
        formatted += f"\n**Code context:**\n```\n{comment.diff_hunk}\n```\n"

    return formatted
