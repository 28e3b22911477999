"""Review activity fetching for a single repository."""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..api_client import GitHubAPIClient, parse_github_timestamp
from ..bot_filter import BotFilter
from ..models import (
    FetchMode,
    FetchResult,
    FetchWindow,
    PullRequestInfo,
    RateLimit,
    ReviewCommentDetail,
    UserActivity,
)


PRS_PER_PAGE = 20  # larger pages time out on big repositories

PR_REVIEWS_QUERY = '''
query RepoReviewActivity($org: String!, $repo: String!, $cursor: String) {
  repository(owner: $org, name: $repo) {
    pullRequests(first: %d, after: $cursor, orderBy: {field: UPDATED_AT, direction: DESC}) {
      pageInfo { hasNextPage endCursor }
      nodes {
        number
        title
        url
        state
        updatedAt
        author { login }
        reviews(first: 50) {
          nodes {
            author { login }
            state
            createdAt
          }
        }
        reviewThreads(first: 100) {
          nodes {
            comments(first: 100) {
              nodes {
                author { login }
                body
                diffHunk
                createdAt
              }
            }
          }
        }
      }
    }
  }
  rateLimit { remaining resetAt }
}
''' % PRS_PER_PAGE


def _author_login(node: Dict) -> Optional[str]:
    author = node.get('author')
    if not author:
        return None
    return author.get('login') or None


class ReviewFetcher:
    """Walks a repository's pull requests and collects review activity."""

    def __init__(self, api_client: GitHubAPIClient, bot_filter: BotFilter = None):
        """Initialize the fetcher.

        Args:
            api_client: GitHub API client
            bot_filter: Filter for automated accounts (default patterns if None)
        """
        self.api_client = api_client
        self.bot_filter = bot_filter or BotFilter()

    def fetch_review_activity(self, org: str, repo: str, window: FetchWindow,
                              on_progress: Optional[Callable[[int], None]] = None) -> FetchResult:
        """Fetch review verdicts and line comments of a repository.

        Pull requests arrive most recently updated first. In SINCE mode the walk
        stops at the first pull request updated before the boundary; in MAX_PRS
        mode it stops once the cap is reached.

        Args:
            org: Organization login
            repo: Repository name
            window: Time boundary or pull request cap
            on_progress: Called with the number of processed pull requests after each page

        Returns:
            FetchResult with per-login activity and comment details for this repository
        """
        result = FetchResult()
        cursor = None
        has_next_page = True

        # Verdicts and comments are only date-filtered in SINCE mode
        comment_since = window.since if window.mode is FetchMode.SINCE else None

        while has_next_page:
            data = self.api_client.execute_with_retry(PR_REVIEWS_QUERY, {
                'org': org,
                'repo': repo,
                'cursor': cursor
            })

            rate_limit = RateLimit.from_dict(data['rateLimit'])

            # Repository is null when access is denied
            if not data.get('repository'):
                logging.warning(f"Repository {org}/{repo} returned no data, skipping remaining pages")
                break

            pr_data = data['repository']['pullRequests']

            for pr in pr_data['nodes']:
                if window.mode is FetchMode.MAX_PRS and result.prs_processed >= window.max_prs:
                    has_next_page = False
                    break

                if window.mode is FetchMode.SINCE and parse_github_timestamp(pr['updatedAt']) < window.since:
                    logging.debug(f"PR #{pr['number']} in {repo} last updated {pr['updatedAt']}, stopping walk")
                    has_next_page = False
                    break

                self._process_pr(pr, repo, comment_since, result)
                result.prs_processed += 1

                if window.mode is FetchMode.MAX_PRS and result.prs_processed >= window.max_prs:
                    has_next_page = False
                    break

            if on_progress:
                on_progress(result.prs_processed)

            if has_next_page:
                has_next_page = pr_data['pageInfo']['hasNextPage']
                cursor = pr_data['pageInfo']['endCursor']

            self.api_client.wait_if_rate_limited(rate_limit, has_next_page)

        logging.info(f"Processed {result.prs_processed} PRs in {repo}: "
                     f"{len(result.activity)} contributors, {len(result.details)} comments")
        return result

    def _should_skip(self, login: Optional[str], pr_author: Optional[str], created_at: str,
                     since: Optional[datetime]) -> bool:
        """Check whether a verdict or comment is excluded from the statistics."""
        if not login:
            return True
        if self.bot_filter.is_bot(login):
            return True
        # Self-reviews and self-comments on one's own PR
        if pr_author and login.lower() == pr_author.lower():
            return True
        if since and parse_github_timestamp(created_at) < since:
            return True
        return False

    def _process_pr(self, pr: Dict, repo: str, since: Optional[datetime], result: FetchResult):
        """Count one pull request's reviews and line comments into the result.

        Args:
            pr: Pull request node from the GraphQL response
            repo: Repository name
            since: Drop verdicts and comments created before this time (None = keep all)
            result: Accumulator for this repository
        """
        pr_author = _author_login(pr)

        for review in pr['reviews']['nodes']:
            reviewer = _author_login(review)
            if self._should_skip(reviewer, pr_author, review['createdAt'], since):
                continue

            activity = self._get_or_create_activity(result.activity, reviewer)
            activity.repos_active_in.add(repo)

            # Verdicts never count toward total_activity
            state = review['state']
            if state == 'APPROVED':
                activity.approvals += 1
                activity.reviews_given += 1
            elif state == 'CHANGES_REQUESTED':
                activity.changes_requested += 1
                activity.reviews_given += 1
            elif state == 'COMMENTED':
                activity.reviews_given += 1

        pr_info = PullRequestInfo(
            repo=repo,
            number=pr['number'],
            title=pr['title'],
            author=pr_author or 'unknown',
            url=pr['url'],
            state=pr['state']
        )

        for thread in pr['reviewThreads']['nodes']:
            for comment in thread['comments']['nodes']:
                commenter = _author_login(comment)
                if self._should_skip(commenter, pr_author, comment['createdAt'], since):
                    continue

                activity = self._get_or_create_activity(result.activity, commenter)
                activity.repos_active_in.add(repo)
                activity.review_comments += 1
                activity.total_activity += 1

                result.details.append(ReviewCommentDetail(
                    reviewer=commenter,
                    body=comment['body'],
                    diff_hunk=comment.get('diffHunk') or '',
                    created_at=comment['createdAt'],
                    pr=pr_info
                ))

    @staticmethod
    def _get_or_create_activity(activity_map: Dict[str, UserActivity], login: str) -> UserActivity:
        activity = activity_map.get(login)
        if activity is None:
            activity = UserActivity(login=login)
            activity_map[login] = activity
        return activity
