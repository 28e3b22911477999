"""Data models for review mining and analysis."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set


@dataclass
class UserActivity:
    """Review activity of a single contributor, accumulated across repositories."""
    login: str
    total_activity: int = 0  # line comments only, drives ranking
    reviews_given: int = 0  # APPROVED + CHANGES_REQUESTED + COMMENTED
    approvals: int = 0
    changes_requested: int = 0
    review_comments: int = 0  # line-level comments in review threads
    repos_active_in: Set[str] = field(default_factory=set)

    def copy(self) -> 'UserActivity':
        """Return an independent copy (the repository set is not shared)."""
        return UserActivity(
            login=self.login,
            total_activity=self.total_activity,
            reviews_given=self.reviews_given,
            approvals=self.approvals,
            changes_requested=self.changes_requested,
            review_comments=self.review_comments,
            repos_active_in=set(self.repos_active_in)
        )

    def merged_with(self, other: 'UserActivity') -> 'UserActivity':
        """Return a new activity with all counters summed and repository sets unioned.

        Args:
            other: Activity of the same login from another repository

        Returns:
            Freshly allocated UserActivity; neither input is modified
        """
        return UserActivity(
            login=self.login,
            total_activity=self.total_activity + other.total_activity,
            reviews_given=self.reviews_given + other.reviews_given,
            approvals=self.approvals + other.approvals,
            changes_requested=self.changes_requested + other.changes_requested,
            review_comments=self.review_comments + other.review_comments,
            repos_active_in=self.repos_active_in | other.repos_active_in
        )


@dataclass(frozen=True)
class PullRequestInfo:
    """Pull request metadata attached to every mined comment."""
    repo: str
    number: int
    title: str
    author: str
    url: str
    state: str  # OPEN, CLOSED or MERGED

    def to_dict(self) -> Dict:
        return {
            'repo': self.repo,
            'number': self.number,
            'title': self.title,
            'author': self.author,
            'url': self.url,
            'state': self.state,
        }


@dataclass(frozen=True)
class ReviewCommentDetail:
    """A single line-level review comment with its pull request context."""
    reviewer: str
    body: str
    diff_hunk: str
    created_at: str
    pr: PullRequestInfo

    def to_dict(self) -> Dict:
        """Serialize using the key names of the details JSON artifact."""
        return {
            'reviewer': self.reviewer,
            'body': self.body,
            'diffHunk': self.diff_hunk,
            'createdAt': self.created_at,
            'pr': self.pr.to_dict(),
        }


@dataclass
class ReviewCommentWithContext:
    """Canonical comment shape used by the analysis stage."""
    reviewer: str
    body: str
    diff_hunk: str
    created_at: str
    repo: str
    pr: Optional[PullRequestInfo] = None  # missing in legacy details files


@dataclass
class ReviewerGroup:
    """All comments of one reviewer, possibly truncated to the most recent N."""
    reviewer: str
    comments: List[ReviewCommentWithContext] = field(default_factory=list)
    total_comments: int = 0


@dataclass
class PRRankingRow:
    """One row of the pull request rankings CSV."""
    rank: int
    repo: str
    pr_number: int
    pr_title: str
    pr_author: str
    pr_url: str
    total_comments: int
    reviewer_count: int
    state: str


@dataclass
class RateLimit:
    """Snapshot of the GraphQL rate limit budget."""
    remaining: int
    reset_at: str

    @classmethod
    def from_dict(cls, data: Dict) -> 'RateLimit':
        return cls(remaining=data['remaining'], reset_at=data['resetAt'])


class FetchMode(Enum):
    """How far back the review fetcher walks a repository's pull requests."""
    SINCE = 'since'
    MAX_PRS = 'max_prs'


@dataclass(frozen=True)
class FetchWindow:
    """Either a time boundary or a pull request count cap, never both.

    Build instances through since_date() or max_pull_requests().
    """
    mode: FetchMode
    since: Optional[datetime] = None
    max_prs: Optional[int] = None

    def __post_init__(self):
        if self.mode is FetchMode.SINCE:
            if self.since is None or self.max_prs is not None:
                raise ValueError("SINCE window requires a since date and no PR cap")
            if self.since.tzinfo is None:
                raise ValueError("since date must be timezone-aware")
        elif self.mode is FetchMode.MAX_PRS:
            if self.max_prs is None or self.since is not None:
                raise ValueError("MAX_PRS window requires a PR cap and no since date")
            if self.max_prs < 1:
                raise ValueError(f"max_prs must be positive, got {self.max_prs}")

    @classmethod
    def since_date(cls, since: datetime) -> 'FetchWindow':
        return cls(mode=FetchMode.SINCE, since=since)

    @classmethod
    def max_pull_requests(cls, max_prs: int) -> 'FetchWindow':
        return cls(mode=FetchMode.MAX_PRS, max_prs=max_prs)


@dataclass
class FetchResult:
    """Activity and comment details mined from one repository."""
    activity: Dict[str, UserActivity] = field(default_factory=dict)
    details: List[ReviewCommentDetail] = field(default_factory=list)
    prs_processed: int = 0
