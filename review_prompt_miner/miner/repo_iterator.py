"""Repository enumeration for an organization."""

import logging
from typing import Callable, List, Optional

from ..api_client import GitHubAPIClient
from ..models import RateLimit


REPOS_QUERY = '''
query OrgRepos($org: String!, $cursor: String) {
  organization(login: $org) {
    repositories(first: 100, after: $cursor, isArchived: false) {
      pageInfo { hasNextPage endCursor }
      nodes { name }
    }
  }
  rateLimit { remaining resetAt }
}
'''


def fetch_org_repos(api_client: GitHubAPIClient, org: str, filter_repos: Optional[List[str]] = None,
                    on_progress: Optional[Callable[[int], None]] = None) -> List[str]:
    """Resolve the repositories to scan.

    An explicit repository list is returned as-is; unknown names surface later
    when their pull requests are fetched.

    Args:
        api_client: GitHub API client
        org: Organization login
        filter_repos: Explicit repository names (optional)
        on_progress: Called with the number of repositories found after each page

    Returns:
        Repository names in discovery order
    """
    if filter_repos:
        logging.info(f"Using {len(filter_repos)} repositories from filter: {', '.join(filter_repos)}")
        return filter_repos

    repos = []
    cursor = None
    has_next_page = True
    page = 0

    while has_next_page:
        page += 1
        logging.debug(f"Fetching repository page {page} for {org}")
        data = api_client.post_graphql(REPOS_QUERY, {'org': org, 'cursor': cursor})

        rate_limit = RateLimit.from_dict(data['rateLimit'])
        repo_data = data['organization']['repositories']

        for node in repo_data['nodes']:
            repos.append(node['name'])

        if on_progress:
            on_progress(len(repos))

        has_next_page = repo_data['pageInfo']['hasNextPage']
        cursor = repo_data['pageInfo']['endCursor']

        api_client.wait_if_rate_limited(rate_limit, has_next_page)

    logging.info(f"Found {len(repos)} non-archived repositories in {org}")
    return repos
