"""Loading of mined comments and grouping by reviewer for analysis."""

import os
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..api_client import parse_github_timestamp
from ..errors import InputFormatError
from ..models import PullRequestInfo, ReviewCommentWithContext, ReviewerGroup


class InputFormat(Enum):
    """Supported analysis input files."""
    DETAILS = 'details'  # details JSON with a 'comments' array
    MINE = 'mine'  # older mine output with a 'reviews' array


@dataclass
class ParsedInput:
    """Comments normalized from either input format, plus what metadata the file had."""
    input_format: InputFormat
    comments: List[ReviewCommentWithContext] = field(default_factory=list)
    organization: Optional[str] = None
    since: Optional[str] = None
    analyzed_at: Optional[str] = None

    @property
    def total_comments(self) -> int:
        return len(self.comments)


def detect_input_format(data: Dict) -> InputFormat:
    """Resolve which of the two input structures a loaded JSON document uses.

    Raises:
        InputFormatError: If the document has neither a 'comments' nor a 'reviews' array
    """
    if isinstance(data, dict):
        if isinstance(data.get('comments'), list):
            return InputFormat.DETAILS
        if isinstance(data.get('reviews'), list):
            return InputFormat.MINE
    raise InputFormatError(
        "Invalid JSON format: expected 'comments' array (from top-reviewers) or 'reviews' array (from mine)"
    )


def parse_input_json(file_path: str) -> ParsedInput:
    """Load an analysis input file in either supported format.

    Args:
        file_path: Path to a details JSON or mine output file

    Returns:
        ParsedInput with comments in the canonical shape

    Raises:
        InputFormatError: If the file is missing, not JSON, or has an unknown structure
    """
    if not os.path.exists(file_path):
        raise InputFormatError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InputFormatError(f"Invalid JSON file: {e}") from e

    input_format = detect_input_format(data)

    if input_format is InputFormat.DETAILS:
        metadata = data.get('metadata') or {}
        parsed = ParsedInput(
            input_format=input_format,
            comments=_details_to_comments(data['comments']),
            organization=metadata.get('organization'),
            since=metadata.get('since'),
            analyzed_at=metadata.get('analyzedAt')
        )
    else:
        metadata = data.get('extraction_metadata') or {}
        parsed = ParsedInput(
            input_format=input_format,
            comments=_flatten_mine_output(data['reviews']),
            organization=metadata.get('organization'),
            since=metadata.get('time_range'),
            analyzed_at=metadata.get('extracted_at')
        )

    logging.info(f"Parsed {parsed.total_comments} comments from {file_path} ({input_format.value} format)")
    return parsed


def _details_to_comments(comments: List[Dict]) -> List[ReviewCommentWithContext]:
    """Normalize details JSON comments (nested 'pr' object, or legacy flat 'repo')."""
    result = []
    for comment in comments:
        pr = comment.get('pr')
        if isinstance(pr, dict):
            result.append(ReviewCommentWithContext(
                reviewer=comment['reviewer'],
                body=comment['body'],
                diff_hunk=comment.get('diffHunk') or '',
                created_at=comment['createdAt'],
                repo=pr['repo'],
                pr=PullRequestInfo(
                    repo=pr['repo'],
                    number=pr['number'],
                    title=pr['title'],
                    author=pr['author'],
                    url=pr['url'],
                    state=pr['state']
                )
            ))
        else:
            result.append(ReviewCommentWithContext(
                reviewer=comment['reviewer'],
                body=comment['body'],
                diff_hunk=comment.get('diffHunk') or '',
                created_at=comment['createdAt'],
                repo=comment.get('repo', 'unknown')
            ))
    return result


def _flatten_mine_output(prs: List[Dict]) -> List[ReviewCommentWithContext]:
    """Flatten per-PR mine output into individual comments."""
    result = []
    for pr_data in prs:
        pr = pr_data['pr']
        # camelCase and snake_case both occur in older files
        reviewer_activity = pr_data.get('reviewerActivity') or pr_data.get('reviewer_activity') or []
        pr_info = PullRequestInfo(
            repo=pr['repo'],
            number=pr['number'],
            title=pr['title'],
            author=pr['author'],
            url=pr['url'],
            state=pr['state']
        )

        for comment in reviewer_activity:
            result.append(ReviewCommentWithContext(
                reviewer=comment['reviewer'],
                body=comment['body'],
                diff_hunk=comment.get('diffHunk') or '',
                created_at=comment['createdAt'],
                repo=pr['repo'],
                pr=pr_info
            ))
    return result


def group_by_reviewer(comments: List[ReviewCommentWithContext]) -> List[ReviewerGroup]:
    """Group comments by reviewer, groups ordered by first appearance."""
    groups: Dict[str, List[ReviewCommentWithContext]] = {}

    for comment in comments:
        groups.setdefault(comment.reviewer, []).append(comment)

    return [
        ReviewerGroup(reviewer=reviewer, comments=reviewer_comments, total_comments=len(reviewer_comments))
        for reviewer, reviewer_comments in groups.items()
    ]


def limit_comments_per_reviewer(groups: List[ReviewerGroup], max_comments: int) -> List[ReviewerGroup]:
    """Keep only each reviewer's most recent comments.

    Args:
        groups: Reviewer groups
        max_comments: Maximum comments per reviewer

    Returns:
        New list of groups; groups already within the limit are reused as-is
    """
    limited_groups = []
    for group in groups:
        if len(group.comments) <= max_comments:
            limited_groups.append(group)
            continue

        newest_first = sorted(group.comments, key=lambda c: parse_github_timestamp(c.created_at), reverse=True)
        limited = newest_first[:max_comments]
        limited_groups.append(ReviewerGroup(
            reviewer=group.reviewer,
            comments=limited,
            total_comments=len(limited)
        ))
    return limited_groups


def max_comments_per_reviewer(groups: List[ReviewerGroup]) -> int:
    """Largest comment count of any single reviewer (0 for no groups)."""
    return max((group.total_comments for group in groups), default=0)
