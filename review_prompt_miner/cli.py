"""Command line interface."""

import os
import sys
import argparse
import logging
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv

from .config import (
    DEFAULT_OUTPUT_PATH,
    DEFAULT_SINCE_MONTHS,
    DEFAULT_TOP,
    PipelineConfig,
    get_analyze_model,
    get_prompt_model,
    months_ago,
    parse_date,
)
from .errors import ConfigurationError, format_error, is_auth_error, is_network_error
from .models import FetchWindow
from .pipeline import ReviewPromptPipeline


DEFAULT_DETAILS_PATH = './pr-review-prompt-details.json'
DEFAULT_ANALYSIS_PATH = './pr-review-prompt-analysis.md'

EXIT_ERROR = 2


def configure_logging():
    """Configure logging (can be overridden by LOG_LEVEL environment variable)."""
    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%m/%d/%Y %I:%M:%S %p'
    )


def positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not an integer")
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {parsed}")
    return parsed


def date_arg(value: str) -> datetime:
    try:
        return parse_date(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def repo_list(value: str) -> List[str]:
    return [r.strip() for r in value.split(',') if r.strip()]


def _add_mining_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--org', required=True, help='GitHub organization to analyze')
    parser.add_argument('--repos', type=repo_list, help='Comma-separated repository names (default: all)')
    parser.add_argument('--top', type=positive_int, default=DEFAULT_TOP,
                        help=f'Number of top reviewers to keep (default: {DEFAULT_TOP})')

    window = parser.add_mutually_exclusive_group()
    window.add_argument('--since', type=date_arg,
                        help=f'Only count activity after this date, YYYY-MM-DD '
                             f'(default: {DEFAULT_SINCE_MONTHS} months ago)')
    window.add_argument('--max-prs', type=positive_int,
                        help='Scan the N most recently updated PRs per repository instead of a date range')


def _add_analysis_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--max-comments', type=positive_int,
                        help='Maximum comments per reviewer sent to the model')
    parser.add_argument('--analyze-model', help='Model for the analysis step (default: CLAUDE_MODEL or built-in)')


def _add_prompt_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--prompt-model',
                        help='Model for prompt generation (default: CLAUDE_MODEL_HEAVY or built-in)')
    parser.add_argument('--include-attribution', action='store_true',
                        help='Name the reviewers who emphasize each rule')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='review-prompt-miner',
        description='Mine GitHub PR review comments and turn them into a PR review agent prompt.'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    build = subparsers.add_parser('build-prompt', help='Run the full pipeline')
    _add_mining_arguments(build)
    _add_analysis_arguments(build)
    _add_prompt_arguments(build)
    build.add_argument('--output', default=DEFAULT_OUTPUT_PATH,
                       help=f'Prompt output path (default: {DEFAULT_OUTPUT_PATH})')

    top = subparsers.add_parser('top-reviewers', help='Rank reviewers and export their comments')
    _add_mining_arguments(top)
    top.add_argument('--output', default=DEFAULT_DETAILS_PATH,
                     help=f'Details JSON output path (default: {DEFAULT_DETAILS_PATH})')

    analyze = subparsers.add_parser('analyze', help='Analyze review comments from a JSON file')
    analyze.add_argument('--input', required=True, help='Details JSON or mine output JSON')
    _add_analysis_arguments(analyze)
    analyze.add_argument('--output', default=DEFAULT_ANALYSIS_PATH,
                         help=f'Analysis report path (default: {DEFAULT_ANALYSIS_PATH})')

    generate = subparsers.add_parser('generate-prompt', help='Generate the review prompt from an analysis report')
    generate.add_argument('--input', required=True, help='Analysis markdown report')
    _add_prompt_arguments(generate)
    generate.add_argument('--details', help='Details file recorded in the footer (default: the input path)')
    generate.add_argument('--output', default=DEFAULT_OUTPUT_PATH,
                          help=f'Prompt output path (default: {DEFAULT_OUTPUT_PATH})')

    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    """Build a PipelineConfig from parsed arguments, filling defaults for options a subcommand lacks."""
    max_prs = getattr(args, 'max_prs', None)
    if max_prs:
        window = FetchWindow.max_pull_requests(max_prs)
    else:
        window = FetchWindow.since_date(getattr(args, 'since', None) or months_ago(DEFAULT_SINCE_MONTHS))

    return PipelineConfig(
        org=getattr(args, 'org', None) or '',
        window=window,
        repos=getattr(args, 'repos', None) or None,
        top=getattr(args, 'top', DEFAULT_TOP),
        output_path=args.output,
        max_comments=getattr(args, 'max_comments', None),
        analyze_model=getattr(args, 'analyze_model', None) or get_analyze_model(),
        prompt_model=getattr(args, 'prompt_model', None) or get_prompt_model(),
        include_attribution=getattr(args, 'include_attribution', False)
    )


def run_command(args: argparse.Namespace, pipeline: Optional[ReviewPromptPipeline] = None):
    config = config_from_args(args)
    pipeline = pipeline or ReviewPromptPipeline(config)

    if args.command == 'build-prompt':
        pipeline.run()
    elif args.command == 'top-reviewers':
        pipeline.mine_top_reviewers(config.output_path)
    elif args.command == 'analyze':
        pipeline.analyze(args.input, config.output_path)
    elif args.command == 'generate-prompt':
        pipeline.generate_prompt(args.input, config.output_path, args.details or args.input)


def suggestion_for(error: Exception) -> str:
    if isinstance(error, ConfigurationError) and error.suggestion:
        return error.suggestion
    if is_network_error(error):
        return "Check your internet connection and try again."
    if is_auth_error(error):
        return "Verify that GITHUB_TOKEN and ANTHROPIC_API_KEY are valid."
    return "Run with LOG_LEVEL=DEBUG for more details."


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    load_dotenv()
    configure_logging()

    args = build_parser().parse_args(argv)
    logging.debug(f"Running command '{args.command}'")

    try:
        run_command(args)
    except Exception as e:
        logging.debug("Command failed", exc_info=True)
        print(format_error(f"{args.command} failed", str(e), suggestion_for(e)), file=sys.stderr)
        return EXIT_ERROR

    return 0
