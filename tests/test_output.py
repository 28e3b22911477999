"""
Unit tests for OutputFormatter and PR ranking output
"""

import csv
import json
import pytest

from review_prompt_miner.models import PullRequestInfo, ReviewCommentDetail, UserActivity
from review_prompt_miner.output import (
    PR_RANKINGS_CSV_COLUMNS,
    OutputFormatter,
    OutputMetadata,
    aggregate_pr_rankings,
    derive_pr_rankings_csv_path,
    write_pr_rankings_csv,
)


def make_detail(reviewer, repo='api', number=1, title='Fix bug', author='bob', state='MERGED', body='comment'):
    pr = PullRequestInfo(repo=repo, number=number, title=title, author=author,
                         url=f'https://github.com/acme/{repo}/pull/{number}', state=state)
    return ReviewCommentDetail(reviewer=reviewer, body=body, diff_hunk='@@', created_at='2024-05-01T10:00:00Z', pr=pr)


@pytest.fixture
def since_metadata():
    return OutputMetadata(org='acme', analyzed_at='2024-05-01', total_repos=3, total_contributors=2,
                          since='2024-02-01')


@pytest.fixture
def max_prs_metadata():
    return OutputMetadata(org='acme', analyzed_at='2024-05-01', total_repos=2,
                          pr_count_per_repo=50, total_prs_analyzed=87)


class TestConsoleTable:
    """Test cases for the ranked contributor table."""

    def test_table_rows(self, since_metadata, capsys):
        """Test that each contributor gets a ranked row."""
        formatter = OutputFormatter(since_metadata)
        activities = [
            UserActivity(login='alice', total_activity=12, approvals=3, changes_requested=1,
                         review_comments=12, repos_active_in={'api', 'web'}),
            UserActivity(login='bob', total_activity=4, review_comments=4, repos_active_in={'api'}),
        ]

        formatter.print_table(activities)

        captured = capsys.readouterr()
        assert 'Organization:' in captured.out
        assert 'acme' in captured.out
        assert '2024-02-01 to 2024-05-01' in captured.out
        assert 'Changes Req' in captured.out
        lines = captured.out.splitlines()
        alice_line = next(line for line in lines if 'alice' in line)
        assert alice_line.split() == ['1', 'alice', '12', '3', '1', '12', '2']
        bob_line = next(line for line in lines if 'bob' in line)
        assert bob_line.split()[0] == '2'

    def test_empty_table(self, since_metadata, capsys):
        """Test the message shown without activity."""
        OutputFormatter(since_metadata).print_table([])

        assert 'No review activity found.' in capsys.readouterr().out

    def test_header_in_pr_count_mode(self, max_prs_metadata, capsys):
        """Test that PR-count runs show the cap and processed count."""
        OutputFormatter(max_prs_metadata).print_table([])

        out = capsys.readouterr().out
        assert 'PRs per repo:' in out
        assert '50' in out
        assert 'PRs analyzed:' in out
        assert '87' in out
        assert 'Time range:' not in out


class TestDetailsJson:
    """Test cases for the details JSON artifact."""

    def test_since_metadata_and_comments(self, since_metadata, tmp_path):
        """Test the written structure of a time-window run."""
        output_path = tmp_path / 'nested' / 'details.json'
        details = [make_detail('alice', body='Bitte prüfen, danke'), make_detail('bob')]

        OutputFormatter(since_metadata).write_details_json(details, str(output_path))

        data = json.loads(output_path.read_text(encoding='utf-8'))
        assert data['metadata'] == {
            'organization': 'acme',
            'analyzedAt': '2024-05-01',
            'totalReposAnalyzed': 3,
            'totalComments': 2,
            'since': '2024-02-01',
        }
        assert data['comments'][0]['reviewer'] == 'alice'
        assert data['comments'][0]['body'] == 'Bitte prüfen, danke'
        assert data['comments'][0]['pr']['number'] == 1
        assert 'diffHunk' in data['comments'][0]

    def test_pr_count_metadata(self, max_prs_metadata, tmp_path):
        """Test that PR-count runs store the cap and processed count instead of a date."""
        output_path = tmp_path / 'details.json'

        OutputFormatter(max_prs_metadata).write_details_json([], str(output_path))

        metadata = json.loads(output_path.read_text())['metadata']
        assert metadata['prCountPerRepo'] == 50
        assert metadata['totalPRsAnalyzed'] == 87
        assert metadata['totalComments'] == 0
        assert 'since' not in metadata


class TestPRRankings:
    """Test cases for PR ranking aggregation and CSV output."""

    def test_groups_by_repo_and_number(self):
        """Test that same-numbered PRs in different repos stay separate."""
        details = [
            make_detail('alice', repo='api', number=1),
            make_detail('bob', repo='api', number=1),
            make_detail('alice', repo='api', number=1),
            make_detail('alice', repo='web', number=1),
        ]

        rankings = aggregate_pr_rankings(details)

        assert [(r.repo, r.pr_number, r.total_comments, r.reviewer_count) for r in rankings] == [
            ('api', 1, 3, 2),
            ('web', 1, 1, 1),
        ]
        assert [r.rank for r in rankings] == [1, 2]

    def test_ties_keep_first_seen_order(self):
        """Test that equal comment counts keep discovery order."""
        details = [
            make_detail('alice', number=5),
            make_detail('alice', number=9),
            make_detail('alice', number=2),
            make_detail('bob', number=2),
        ]

        rankings = aggregate_pr_rankings(details)

        assert [r.pr_number for r in rankings] == [2, 5, 9]

    def test_empty_details(self):
        """Test that no details produce no rankings."""
        assert aggregate_pr_rankings([]) == []

    def test_csv_header_and_quoting(self, tmp_path):
        """Test that titles with commas, quotes and newlines survive a CSV round trip."""
        title = 'Fix "parser", part 2\nfollow-up'
        rankings = aggregate_pr_rankings([make_detail('alice', title=title), make_detail('bob', title=title)])
        output_path = tmp_path / 'out' / 'rankings.csv'

        write_pr_rankings_csv(rankings, str(output_path))

        content = output_path.read_text(encoding='utf-8')
        assert content.splitlines()[0] == ','.join(PR_RANKINGS_CSV_COLUMNS)
        assert '"Fix ""parser"", part 2\nfollow-up"' in content

        with open(output_path, newline='', encoding='utf-8') as f:
            rows = list(csv.reader(f))
        assert rows[1] == ['1', 'api', '1', title, 'bob', '2', '2', 'MERGED', 'https://github.com/acme/api/pull/1']

    def test_csv_header_only_without_rankings(self, tmp_path):
        """Test that an empty ranking still writes the header."""
        output_path = tmp_path / 'rankings.csv'

        write_pr_rankings_csv([], str(output_path))

        assert output_path.read_text() == ','.join(PR_RANKINGS_CSV_COLUMNS) + '\n'

    @pytest.mark.parametrize('details_path,expected', [
        ('out/prompt-details.json', 'out/prompt-details-pr-rankings.csv'),
        ('out/prompt-details', 'out/prompt-details-pr-rankings.csv'),
        ('details.JSON', 'details.JSON-pr-rankings.csv'),
    ])
    def test_derive_csv_path(self, details_path, expected):
        """Test deriving the CSV path from the details path."""
        assert derive_pr_rankings_csv_path(details_path) == expected


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
