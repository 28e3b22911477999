"""Review activity mining across an organization's repositories."""

from .aggregator import aggregate_activity, aggregate_details, top_n
from .repo_iterator import fetch_org_repos
from .review_fetcher import ReviewFetcher

__all__ = [
    'aggregate_activity',
    'aggregate_details',
    'top_n',
    'fetch_org_repos',
    'ReviewFetcher',
]
