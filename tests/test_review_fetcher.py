"""
Unit tests for per-repository review activity fetching
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from review_prompt_miner.miner.review_fetcher import ReviewFetcher
from review_prompt_miner.models import FetchWindow


T = datetime(2024, 3, 1, tzinfo=timezone.utc)


def ts(dt):
    return dt.strftime('%Y-%m-%dT%H:%M:%SZ')


def make_review(login, state, created_at):
    return {'author': {'login': login} if login else None, 'state': state, 'createdAt': ts(created_at)}


def make_comment(login, body, created_at, diff_hunk='@@ -1,3 +1,4 @@'):
    return {
        'author': {'login': login} if login else None,
        'body': body,
        'diffHunk': diff_hunk,
        'createdAt': ts(created_at)
    }


def make_pr(number, author, updated_at, reviews=None, comments=None, title=None, state='MERGED'):
    return {
        'number': number,
        'title': title or f'PR {number}',
        'url': f'https://github.com/acme/api/pull/{number}',
        'state': state,
        'updatedAt': ts(updated_at),
        'author': {'login': author} if author else None,
        'reviews': {'nodes': reviews or []},
        'reviewThreads': {'nodes': [{'comments': {'nodes': comments or []}}]}
    }


def make_page(prs, has_next_page=False, end_cursor=None, remaining=5000):
    return {
        'repository': {
            'pullRequests': {
                'pageInfo': {'hasNextPage': has_next_page, 'endCursor': end_cursor},
                'nodes': prs
            }
        },
        'rateLimit': {'remaining': remaining, 'resetAt': '2024-05-01T13:00:00Z'}
    }


@pytest.fixture
def api_client():
    client = Mock()
    client.wait_if_rate_limited.return_value = False
    return client


@pytest.fixture
def fetcher(api_client):
    return ReviewFetcher(api_client)


@pytest.fixture
def since_window():
    return FetchWindow.since_date(T)


class TestVerdictCounting:
    """Test cases for review verdict counting."""

    def test_verdicts_counted_without_total_activity(self, fetcher, api_client, since_window):
        """Test that verdicts update review counters but not total activity."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.return_value = make_page([
            make_pr(1, 'bob', later, reviews=[
                make_review('alice', 'APPROVED', later),
                make_review('alice', 'CHANGES_REQUESTED', later),
                make_review('alice', 'COMMENTED', later),
            ])
        ])

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        alice = result.activity['alice']
        assert alice.approvals == 1
        assert alice.changes_requested == 1
        assert alice.reviews_given == 3
        assert alice.total_activity == 0
        assert alice.repos_active_in == {'api'}

    def test_dismissed_and_pending_register_repo_only(self, fetcher, api_client, since_window):
        """Test that other verdict states create the entry without counting."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.return_value = make_page([
            make_pr(1, 'bob', later, reviews=[
                make_review('carol', 'DISMISSED', later),
                make_review('carol', 'PENDING', later),
            ])
        ])

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        carol = result.activity['carol']
        assert carol.reviews_given == 0
        assert carol.repos_active_in == {'api'}


class TestCommentCollection:
    """Test cases for line comment collection."""

    def test_comments_counted_and_detailed(self, fetcher, api_client, since_window):
        """Test that comments count toward total activity and produce details."""
        later = T + timedelta(days=2)
        api_client.execute_with_retry.return_value = make_page([
            make_pr(7, 'bob', later, title='Add cache', comments=[
                make_comment('alice', 'Please add a test', later),
                make_comment('alice', 'Nit: naming', later, diff_hunk=None),
            ])
        ])

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        alice = result.activity['alice']
        assert alice.review_comments == 2
        assert alice.total_activity == 2
        assert len(result.details) == 2

        detail = result.details[0]
        assert detail.reviewer == 'alice'
        assert detail.body == 'Please add a test'
        assert detail.pr.number == 7
        assert detail.pr.title == 'Add cache'
        assert detail.pr.author == 'bob'
        assert detail.pr.repo == 'api'
        assert detail.pr.state == 'MERGED'
        assert result.details[1].diff_hunk == ''

    def test_bots_and_self_comments_excluded(self, fetcher, api_client, since_window):
        """Test that bot accounts and PR authors are never counted."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.return_value = make_page([
            make_pr(1, 'Bob', later,
                    reviews=[make_review('dependabot[bot]', 'APPROVED', later),
                             make_review('bob', 'APPROVED', later)],
                    comments=[make_comment('propel-code-bot', 'auto', later),
                              make_comment('bob', 'self note', later),
                              make_comment(None, 'ghost', later),
                              make_comment('alice', 'real', later)])
        ])

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        assert set(result.activity) == {'alice'}
        assert [d.body for d in result.details] == ['real']

    def test_author_counts_on_pull_requests_of_others(self, fetcher, api_client, since_window):
        """Test that a login skipped on its own PR still counts on another author's PR."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.return_value = make_page([
            make_pr(2, 'bob', later,
                    reviews=[make_review('alice', 'APPROVED', later)],
                    comments=[make_comment('alice', 'on bob', later)]),
            make_pr(1, 'alice', later,
                    reviews=[make_review('alice', 'APPROVED', later)],
                    comments=[make_comment('alice', 'own pr', later)])
        ])

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        alice = result.activity['alice']
        assert alice.approvals == 1
        assert alice.reviews_given == 1
        assert alice.review_comments == 1
        assert alice.total_activity == 1
        assert alice.repos_active_in == {'api'}
        assert [(d.body, d.pr.number) for d in result.details] == [('on bob', 2)]

    def test_old_verdicts_and_comments_skipped_in_since_mode(self, fetcher, api_client, since_window):
        """Test that entries created before the boundary are ignored on recent PRs."""
        later = T + timedelta(days=1)
        earlier = T - timedelta(days=1)
        api_client.execute_with_retry.return_value = make_page([
            make_pr(1, 'bob', later,
                    reviews=[make_review('alice', 'APPROVED', earlier)],
                    comments=[make_comment('alice', 'old', earlier),
                              make_comment('carol', 'new', later)])
        ])

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        assert 'alice' not in result.activity
        assert [d.body for d in result.details] == ['new']

    def test_missing_pr_author_recorded_as_unknown(self, fetcher, api_client, since_window):
        """Test that deleted PR authors appear as 'unknown'."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.return_value = make_page([
            make_pr(1, None, later, comments=[make_comment('alice', 'hi', later)])
        ])

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        assert result.details[0].pr.author == 'unknown'


class TestPagination:
    """Test cases for walking pull request pages."""

    def test_stops_at_first_pr_older_than_since(self, fetcher, api_client, since_window):
        """Test that the walk ends at the first stale PR even if more pages exist."""
        api_client.execute_with_retry.return_value = make_page([
            make_pr(3, 'bob', T + timedelta(days=10)),
            make_pr(2, 'bob', T + timedelta(days=5)),
            make_pr(1, 'bob', T - timedelta(days=1)),
        ], has_next_page=True, end_cursor='c1')

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        assert result.prs_processed == 2
        assert api_client.execute_with_retry.call_count == 1
        assert api_client.wait_if_rate_limited.call_args[0][1] is False

    def test_follows_cursor_across_pages(self, fetcher, api_client, since_window):
        """Test that later pages are requested with the end cursor."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.side_effect = [
            make_page([make_pr(2, 'bob', later)], has_next_page=True, end_cursor='c1'),
            make_page([make_pr(1, 'bob', later)])
        ]

        result = fetcher.fetch_review_activity('acme', 'api', since_window)

        assert result.prs_processed == 2
        second_variables = api_client.execute_with_retry.call_args_list[1][0][1]
        assert second_variables == {'org': 'acme', 'repo': 'api', 'cursor': 'c1'}

    def test_max_prs_caps_processing(self, fetcher, api_client):
        """Test that PR-count mode stops at the cap without a date filter."""
        old = T - timedelta(days=400)
        api_client.execute_with_retry.side_effect = [
            make_page([make_pr(5, 'bob', old, comments=[make_comment('alice', 'a', old)]),
                       make_pr(4, 'bob', old)], has_next_page=True, end_cursor='c1'),
            make_page([make_pr(3, 'bob', old), make_pr(2, 'bob', old)], has_next_page=True, end_cursor='c2'),
        ]

        result = fetcher.fetch_review_activity('acme', 'api', FetchWindow.max_pull_requests(3))

        assert result.prs_processed == 3
        assert api_client.execute_with_retry.call_count == 2
        assert [d.body for d in result.details] == ['a']

    def test_cap_on_page_boundary_skips_next_page(self, fetcher, api_client):
        """Test that reaching the cap on the last PR of a page ends the walk without waiting."""
        old = T - timedelta(days=400)
        api_client.execute_with_retry.side_effect = [
            make_page([make_pr(2, 'bob', old), make_pr(1, 'bob', old)],
                      has_next_page=True, end_cursor='c1', remaining=10),
            make_page([make_pr(0, 'bob', old)])
        ]

        result = fetcher.fetch_review_activity('acme', 'api', FetchWindow.max_pull_requests(2))

        assert result.prs_processed == 2
        assert api_client.execute_with_retry.call_count == 1
        assert [c[0][1] for c in api_client.wait_if_rate_limited.call_args_list] == [False]

    def test_null_repository_stops_walk(self, fetcher, api_client, since_window):
        """Test that an inaccessible repository yields an empty result."""
        api_client.execute_with_retry.return_value = {
            'repository': None,
            'rateLimit': {'remaining': 5000, 'resetAt': '2024-05-01T13:00:00Z'}
        }

        result = fetcher.fetch_review_activity('acme', 'secret', since_window)

        assert result.prs_processed == 0
        assert result.activity == {}
        assert result.details == []

    def test_progress_after_each_page(self, fetcher, api_client, since_window):
        """Test that progress receives the processed PR count per page."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.side_effect = [
            make_page([make_pr(3, 'bob', later), make_pr(2, 'bob', later)], has_next_page=True, end_cursor='c1'),
            make_page([make_pr(1, 'bob', later)])
        ]
        progress = Mock()

        fetcher.fetch_review_activity('acme', 'api', since_window, on_progress=progress)

        assert [c[0][0] for c in progress.call_args_list] == [2, 3]

    def test_low_rate_limit_passed_to_client(self, fetcher, api_client, since_window):
        """Test that each page's rate limit snapshot is handed to the client."""
        later = T + timedelta(days=1)
        api_client.execute_with_retry.side_effect = [
            make_page([make_pr(2, 'bob', later)], has_next_page=True, end_cursor='c1', remaining=42),
            make_page([make_pr(1, 'bob', later)])
        ]

        fetcher.fetch_review_activity('acme', 'api', since_window)

        first_call = api_client.wait_if_rate_limited.call_args_list[0][0]
        assert first_call[0].remaining == 42
        assert first_call[1] is True


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
