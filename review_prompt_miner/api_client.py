"""GitHub GraphQL API client with retry and rate limit handling."""

import os
import math
import time
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import (
    AuthenticationError,
    ConfigurationError,
    GraphQLError,
    ServiceUnavailableError,
)
from .models import RateLimit


GRAPHQL_URL = 'https://api.github.com/graphql'

MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 2.0  # seconds, doubled per attempt
RATE_LIMIT_THRESHOLD = 500
RATE_LIMIT_BUFFER = 1.0  # seconds added after the reset timestamp

RATE_LIMIT_QUERY = '{ rateLimit { remaining resetAt } }'

ORG_ACCESS_QUERY = '''
query($org: String!) {
  organization(login: $org) { login }
}
'''


def is_html_error_response(message: str) -> bool:
    """Check if an error message carries an HTML error page (GitHub 500/503)."""
    return '<!DOCTYPE' in message or '<html' in message or 'Unicorn' in message


def is_retryable_error(message: str) -> bool:
    """Check if an error message describes a transient timeout or server failure."""
    return (
        "couldn't respond" in message
        or 'timeout' in message
        or 'ETIMEDOUT' in message
        or is_html_error_response(message)
    )


def parse_github_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as returned by GitHub (e.g. 2024-05-01T12:00:00Z)."""
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


class GitHubAPIClient:
    """Executes GraphQL queries against GitHub with retry logic and rate limit waits."""

    def __init__(self, token: str = None, retry_base_delay: float = INITIAL_RETRY_DELAY,
                 sleep: Callable[[float], None] = time.sleep,
                 now: Optional[Callable[[], datetime]] = None):
        """Initialize the GitHub API client.

        Args:
            token: GitHub personal access token (falls back to GITHUB_TOKEN)
            retry_base_delay: Delay in seconds before the first retry of a transient error
            sleep: Function used to wait; replaced in tests
            now: Function returning the current UTC time; replaced in tests

        Raises:
            ConfigurationError: If no token is available
        """
        self.token = token or os.environ.get('GITHUB_TOKEN')
        if not self.token:
            raise ConfigurationError(
                "GITHUB_TOKEN environment variable is required.",
                suggestion="Set it in .env file or export it: export GITHUB_TOKEN=ghp_xxx"
            )

        self.retry_base_delay = retry_base_delay
        self._sleep = sleep
        self._now = now or (lambda: datetime.now(timezone.utc))

        self.session = requests.Session()

        # Connection-level retries; GraphQL-level failures are classified in execute_with_retry
        adapter = HTTPAdapter(
            max_retries=Retry(
                total=3,
                backoff_factor=0.3,
                status_forcelist=[500, 502, 503, 504]
            )
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

        self.session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github.v4+json'
        })
        logging.info("Initialized GitHub GraphQL client with token")

    def post_graphql(self, query: str, variables: Dict = None) -> Dict:
        """Make a single GraphQL query to the GitHub API.

        Args:
            query: GraphQL query string
            variables: Optional query variables

        Returns:
            The 'data' object of the response

        Raises:
            AuthenticationError: If the token is rejected
            GraphQLError: If the request or the query fails
        """
        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = self.session.post(GRAPHQL_URL, json=payload)
        except requests.exceptions.Timeout as e:
            raise GraphQLError(f"Request timeout: {e}") from e
        except requests.exceptions.RequestException as e:
            raise GraphQLError(f"Request to GitHub failed: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError("Bad credentials (HTTP 401)")

        if not response.ok:
            raise GraphQLError(f"GitHub API returned HTTP {response.status_code}: {response.text[:1000]}")

        try:
            result = response.json()
        except ValueError as e:
            raise GraphQLError(f"GitHub API returned a non-JSON response: {response.text[:1000]}") from e

        if result.get("errors"):
            messages = '; '.join(error.get('message', str(error)) for error in result['errors'])
            logging.debug(f"GraphQL errors: {result['errors']}")
            raise GraphQLError(f"GraphQL query failed: {messages}")

        return result.get("data") or {}

    def execute_with_retry(self, query: str, variables: Dict = None) -> Dict:
        """Run a GraphQL query, retrying timeouts and server error pages with exponential backoff.

        Args:
            query: GraphQL query string
            variables: Optional query variables

        Returns:
            The 'data' object of the response

        Raises:
            ServiceUnavailableError: If every attempt failed with a transient error
            GraphQLError: For any non-transient failure (raised immediately)
        """
        last_error = None

        for attempt in range(MAX_RETRIES):
            try:
                return self.post_graphql(query, variables)
            except AuthenticationError:
                raise
            except GraphQLError as e:
                if not is_retryable_error(str(e)):
                    raise
                last_error = e
                if attempt == MAX_RETRIES - 1:
                    break
                delay = self.retry_base_delay * 2 ** attempt
                error_type = "GitHub API error (500/503)" if is_html_error_response(str(e)) else "Timeout"
                logging.warning(f"{error_type} on attempt {attempt + 1}/{MAX_RETRIES}, retrying in {delay:g}s...")
                self._sleep(delay)

        if is_html_error_response(str(last_error)):
            raise ServiceUnavailableError(
                "GitHub API returned server error (500/503) after multiple retries. "
                "This is usually a temporary issue - please try again in a few minutes."
            ) from last_error
        raise ServiceUnavailableError(
            f"GitHub API timed out {MAX_RETRIES} times in a row. "
            "The service may be temporarily unavailable - please try again later."
        ) from last_error

    def check_rate_limit(self) -> RateLimit:
        """Fetch the current rate limit status."""
        data = self.post_graphql(RATE_LIMIT_QUERY)
        return RateLimit.from_dict(data['rateLimit'])

    def wait_for_rate_limit_reset(self, reset_at: str):
        """Block until the rate limit resets.

        The wait is computed from the current wall clock on every call.

        Args:
            reset_at: Reset timestamp reported by the API
        """
        reset_time = parse_github_timestamp(reset_at)
        wait_seconds = (reset_time - self._now()).total_seconds() + RATE_LIMIT_BUFFER
        if wait_seconds > 0:
            logging.warning(f"Rate limit exhausted. Waiting {math.ceil(wait_seconds)}s until reset...")
            self._sleep(wait_seconds)

    def wait_if_rate_limited(self, rate_limit: RateLimit, has_next_page: bool = True) -> bool:
        """Wait for the reset if the remaining budget is low and more pages are pending.

        Args:
            rate_limit: Latest rate limit snapshot
            has_next_page: Whether another request is about to be made

        Returns:
            True if the client waited, False otherwise
        """
        if rate_limit.remaining < RATE_LIMIT_THRESHOLD and has_next_page:
            self.wait_for_rate_limit_reset(rate_limit.reset_at)
            return True
        return False

    def validate_org_access(self, org: str) -> bool:
        """Check that the organization exists and the token can read it.

        Args:
            org: Organization login

        Returns:
            True if accessible, False for unknown organizations or bad credentials

        Raises:
            GraphQLError: For any other failure
        """
        try:
            self.post_graphql(ORG_ACCESS_QUERY, {'org': org})
            return True
        except AuthenticationError:
            logging.error("Invalid GitHub token. Check your GITHUB_TOKEN.")
            return False
        except GraphQLError as e:
            message = str(e)
            if 'Could not resolve to an Organization' in message:
                logging.error(f"Organization '{org}' not found or not accessible.")
                return False
            if 'Bad credentials' in message:
                logging.error("Invalid GitHub token. Check your GITHUB_TOKEN.")
                return False
            raise
