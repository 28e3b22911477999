"""Cross-repository aggregation of review activity."""

from typing import Dict, List

from ..models import ReviewCommentDetail, UserActivity


def aggregate_activity(repo_activities: List[Dict[str, UserActivity]]) -> List[UserActivity]:
    """Merge per-repository activity maps into one list ranked by total activity.

    Counters of a login seen in several repositories are summed and its
    repository sets are unioned. The input maps are left untouched. Ties keep
    the order in which logins were first encountered.

    Args:
        repo_activities: Activity maps in repository scan order

    Returns:
        Newly allocated activities sorted by total_activity, descending
    """
    merged: Dict[str, UserActivity] = {}

    for repo_activity in repo_activities:
        for login, activity in repo_activity.items():
            existing = merged.get(login)
            if existing:
                merged[login] = existing.merged_with(activity)
            else:
                merged[login] = activity.copy()

    return sorted(merged.values(), key=lambda a: a.total_activity, reverse=True)


def top_n(activities: List[UserActivity], n: int) -> List[UserActivity]:
    """Get the first n entries of an already ranked list."""
    return activities[:n]


def aggregate_details(all_details: List[List[ReviewCommentDetail]]) -> List[ReviewCommentDetail]:
    """Flatten per-repository comment details, preserving order."""
    return [detail for details in all_details for detail in details]
