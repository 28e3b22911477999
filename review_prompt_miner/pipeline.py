"""Three-step pipeline: mine top reviewers, analyze their comments, generate the review prompt."""

import os
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import anthropic

from .analyze.claude_client import analyze_reviews, create_claude_client
from .analyze.json_parser import group_by_reviewer, parse_input_json
from .analyze.report_formatter import ReportMetadata, format_markdown_report
from .analyze.token_budget import TokenBudgetController
from .api_client import GitHubAPIClient
from .bot_filter import BotFilter
from .config import PipelineConfig
from .errors import ConfigurationError, GraphQLError
from .generate_prompt import format_prompt_footer, generate_review_prompt
from .miner.aggregator import aggregate_activity, aggregate_details, top_n
from .miner.repo_iterator import fetch_org_repos
from .miner.review_fetcher import ReviewFetcher
from .models import FetchMode, ReviewCommentDetail, UserActivity
from .output import OutputFormatter, OutputMetadata, aggregate_pr_rankings, derive_pr_rankings_csv_path, write_pr_rankings_csv
from .output.colors import BOLD, RESET, dim, format_step, format_success, label


@dataclass
class MiningResult:
    """Outcome of the top reviewers step."""
    repo_names: List[str] = field(default_factory=list)
    ranked: List[UserActivity] = field(default_factory=list)
    top_reviewers: List[UserActivity] = field(default_factory=list)
    details: List[ReviewCommentDetail] = field(default_factory=list)
    skipped_repos: List[str] = field(default_factory=list)
    total_prs_analyzed: int = 0
    details_path: Optional[str] = None
    rankings_path: Optional[str] = None


def _ensure_parent_dir(path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def _write_text(path: str, content: str):
    _ensure_parent_dir(path)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)


class ReviewPromptPipeline:
    """Builds a PR review prompt from an organization's review history."""

    TOTAL_STEPS = 3
    LABEL_WIDTH = 15

    def __init__(self, config: PipelineConfig, api_client: GitHubAPIClient = None,
                 claude_client: anthropic.Anthropic = None, bot_filter: BotFilter = None):
        """Initialize the pipeline.

        Args:
            config: Run settings
            api_client: GitHub client (created from GITHUB_TOKEN on first use if None)
            claude_client: Anthropic client (created from ANTHROPIC_API_KEY on first use if None)
            bot_filter: Filter for automated accounts (default patterns if None)
        """
        self.config = config
        self._api_client = api_client
        self._claude_client = claude_client
        self._bot_filter = bot_filter
        self._fetcher = None

        logging.info(f"Initialized pipeline for organization '{config.org}'")

    @property
    def api_client(self) -> GitHubAPIClient:
        if self._api_client is None:
            self._api_client = GitHubAPIClient()
        return self._api_client

    @property
    def fetcher(self) -> ReviewFetcher:
        if self._fetcher is None:
            self._fetcher = ReviewFetcher(self.api_client, self._bot_filter)
        return self._fetcher

    @property
    def claude_client(self) -> anthropic.Anthropic:
        if self._claude_client is None:
            self._claude_client = create_claude_client()
        return self._claude_client

    def run(self) -> Optional[str]:
        """Run all three steps.

        Returns:
            Path of the generated prompt, or None if there was nothing to analyze
        """
        # Both credentials are checked before any GitHub quota is spent
        _ = self.api_client
        _ = self.claude_client

        self._print_banner()

        print(format_step(1, self.TOTAL_STEPS, "Discovering Top Reviewers"))
        print("")
        mining = self.mine_top_reviewers(self.config.details_path)
        if not mining.details:
            print(dim("  No review comments from top reviewers; nothing to analyze."))
            return None

        print(format_step(2, self.TOTAL_STEPS, "Analyzing Review Patterns"))
        print("")
        self.analyze(self.config.details_path, self.config.analysis_path)

        print(format_step(3, self.TOTAL_STEPS, "Generating PR Review Prompt"))
        print("")
        self.generate_prompt(self.config.analysis_path, self.config.output_path, self.config.details_path)

        print(f"\n{BOLD}✓ Pipeline complete{RESET}")
        return self.config.output_path

    def _print_banner(self):
        config = self.config
        width = self.LABEL_WIDTH
        print(f"{BOLD}Review Prompt Miner - Build PR Review Prompt{RESET}")
        print("")
        print(f"  {label('Organization:', width)} {config.org}")
        print(f"  {label('Repos:', width)} {', '.join(config.repos) if config.repos else 'all'}")
        print(f"  {label('Top reviewers:', width)} {config.top}")
        if config.window.mode is FetchMode.SINCE:
            print(f"  {label('Since:', width)} {config.since_str}")
        else:
            print(f"  {label('PRs per repo:', width)} {config.window.max_prs}")
        print(f"  {label('Output:', width)} {dim(config.output_path)}")
        print(f"  {label('Details:', width)} {dim(config.details_path)}")
        print(f"  {label('Analysis:', width)} {dim(config.analysis_path)}")
        print("")

    def connect(self):
        """Validate organization access and report the starting rate limit.

        Raises:
            ConfigurationError: If the organization is unknown or the token is invalid
        """
        print("Connecting to GitHub API...", flush=True)
        if not self.api_client.validate_org_access(self.config.org):
            raise ConfigurationError(
                f"No access to organization: {self.config.org}",
                suggestion="Check the organization name and that GITHUB_TOKEN can read it."
            )

        rate_limit = self.api_client.check_rate_limit()
        print(format_success("Connected to GitHub API"))
        print(dim(f"  Rate limit: {rate_limit.remaining} points remaining"))
        self.api_client.wait_if_rate_limited(rate_limit)

    def mine_top_reviewers(self, details_path: str) -> MiningResult:
        """Step 1: scan repositories, rank contributors, write details JSON and rankings CSV.

        Args:
            details_path: Where to write the details JSON

        Returns:
            MiningResult for the run
        """
        config = self.config
        result = MiningResult()

        self.connect()

        print("Fetching repositories...", flush=True)
        result.repo_names = fetch_org_repos(
            self.api_client,
            config.org,
            filter_repos=config.repos,
            on_progress=lambda count: logging.debug(f"Found {count} repositories so far")
        )
        print(format_success(f"Found {len(result.repo_names)} repositories"))

        if not result.repo_names:
            print(dim("  No repositories found."))
            return result

        all_activities: List[Dict[str, UserActivity]] = []
        all_details: List[List[ReviewCommentDetail]] = []

        for index, repo in enumerate(result.repo_names, start=1):
            print(f"  [{index}/{len(result.repo_names)}] {repo}...", end='', flush=True)
            try:
                fetched = self.fetcher.fetch_review_activity(
                    config.org,
                    repo,
                    config.window,
                    on_progress=lambda count, repo=repo: logging.debug(f"{repo}: {count} PRs processed")
                )
            except GraphQLError as e:
                if 'Could not resolve' in str(e):
                    print(" not found, skipped")
                    logging.warning(f"Skipping {repo}: {e}")
                    result.skipped_repos.append(repo)
                    continue
                print("")
                raise

            print(f" {fetched.prs_processed} PRs, {len(fetched.details)} comments")
            result.total_prs_analyzed += fetched.prs_processed
            if fetched.activity:
                all_activities.append(fetched.activity)
            if fetched.details:
                all_details.append(fetched.details)

        print(format_success(f"Scanned {len(result.repo_names)} repositories"))

        print(dim("  Aggregating results..."))
        result.ranked = aggregate_activity(all_activities)
        result.top_reviewers = top_n(result.ranked, config.top)

        metadata = self._build_output_metadata(result)
        formatter = OutputFormatter(metadata)
        formatter.print_table(result.top_reviewers)

        top_logins = {activity.login for activity in result.top_reviewers}
        result.details = [d for d in aggregate_details(all_details) if d.reviewer in top_logins]

        formatter.write_details_json(result.details, details_path)
        result.details_path = details_path
        print(format_success(f"Details written to {details_path} "
                             f"({len(result.details)} comments from top {config.top} reviewers)"))

        result.rankings_path = derive_pr_rankings_csv_path(details_path)
        write_pr_rankings_csv(aggregate_pr_rankings(result.details), result.rankings_path)
        print(format_success(f"PR rankings written to {result.rankings_path}"))
        print("")

        return result

    def _build_output_metadata(self, result: MiningResult) -> OutputMetadata:
        window = self.config.window
        metadata = OutputMetadata(
            org=self.config.org,
            analyzed_at=datetime.now(timezone.utc).strftime('%Y-%m-%d'),
            total_repos=len(result.repo_names),
            total_contributors=len(result.ranked)
        )
        if window.mode is FetchMode.SINCE:
            metadata.since = self.config.since_str
        else:
            metadata.pr_count_per_repo = window.max_prs
            metadata.total_prs_analyzed = result.total_prs_analyzed
        return metadata

    def analyze(self, input_path: str, analysis_path: str) -> str:
        """Step 2: analyze the mined comments and write the analysis report.

        Args:
            input_path: Details JSON (or older mine output) to analyze
            analysis_path: Where to write the markdown report

        Returns:
            The report content
        """
        parsed = parse_input_json(input_path)
        print(dim(f"  Parsed {parsed.total_comments} comments"))

        reviewer_groups = group_by_reviewer(parsed.comments)
        controller = TokenBudgetController(reviewer_groups, self.config.max_comments)

        summary = ', '.join(f"{g.reviewer} ({g.total_comments})" for g in controller.reviewer_groups)
        print(f"  {label('Reviewers:', self.LABEL_WIDTH)} {dim(summary)}")

        print("Analyzing patterns with Claude...", flush=True)
        analysis = controller.run(
            lambda groups: analyze_reviews(self.claude_client, groups, model=self.config.analyze_model)
        )
        print(format_success("Analysis complete"))

        report = format_markdown_report(analysis, ReportMetadata(
            input_file=input_path,
            total_comments=parsed.total_comments,
            reviewers=[group.reviewer for group in reviewer_groups],
            analyzed_at=datetime.now(timezone.utc).isoformat(),
            model=self.config.analyze_model
        ))
        _write_text(analysis_path, report)
        print(format_success(f"Analysis written to {analysis_path}"))
        print("")
        return report

    def generate_prompt(self, analysis_path: str, output_path: str, details_path: str) -> str:
        """Step 3: turn the analysis report into the final review prompt file.

        Args:
            analysis_path: Markdown analysis report
            output_path: Where to write the prompt
            details_path: Source details file, recorded in the footer

        Returns:
            The written prompt content
        """
        with open(analysis_path, 'r', encoding='utf-8') as f:
            analysis_content = f.read()

        print(dim(f"  Model: {self.config.prompt_model}"))
        print("Generating PR review prompt with Claude...", flush=True)
        generated = generate_review_prompt(
            self.claude_client,
            analysis_content,
            model=self.config.prompt_model,
            include_attribution=self.config.include_attribution
        )
        print(format_success("Prompt generated"))

        content = generated + format_prompt_footer(details_path, self.config.prompt_model)
        _write_text(output_path, content)
        print(format_success(f"Prompt written to {output_path}"))
        return content
