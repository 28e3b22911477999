"""Terminal table output for OutputFormatter."""

from typing import List

from ..models import UserActivity
from .colors import BOLD, CYAN, DIM, RESET, label


def print_table(self, activities: List[UserActivity]):
    """Print the ranked contributor table.

    Args:
        activities: Top contributors, already ranked
    """
    self._print_header()

    if not activities:
        print(f"{DIM}  No review activity found.{RESET}")
        return

    print(f"  {CYAN}{'Rank':<6} {'User':<25} {'Total':<8} {'Approvals':<11} "
          f"{'Changes Req':<13} {'Comments':<10} {'Repos'}{RESET}")
    print(f"  {'-'*82}")

    for rank, activity in enumerate(activities, start=1):
        print(self._format_activity_row(rank, activity))


def _print_header(self):
    """Print organization, time range or PR count, and repository count."""
    metadata = self.metadata
    width = self.LABEL_WIDTH

    print("")
    print(f"  {BOLD}Top Contributors by PR Review Activity{RESET}")
    print(f"  {label('Organization:', width)} {metadata.org}")
    if metadata.since:
        print(f"  {label('Time range:', width)} {metadata.since} to {metadata.analyzed_at}")
    elif metadata.pr_count_per_repo:
        print(f"  {label('PRs per repo:', width)} {metadata.pr_count_per_repo} (analyzed at: {metadata.analyzed_at})")
        if metadata.total_prs_analyzed is not None:
            print(f"  {label('PRs analyzed:', width)} {metadata.total_prs_analyzed}")
    print(f"  {label('Repos:', width)} {metadata.total_repos}")
    print("")


def _format_activity_row(self, rank: int, activity: UserActivity) -> str:
    return (f"  {rank:<6} {activity.login:<25} {activity.total_activity:<8} {activity.approvals:<11} "
            f"{activity.changes_requested:<13} {activity.review_comments:<10} {len(activity.repos_active_in)}")
