"""Adaptive per-reviewer comment cap for prompts that exceed the model context."""

import logging
from typing import Callable, List, Optional, TypeVar

from ..errors import TokenLimitError
from ..models import ReviewerGroup
from ..output.colors import YELLOW, RESET, dim
from .json_parser import limit_comments_per_reviewer, max_comments_per_reviewer
from .prompt_builder import build_analysis_prompt, estimate_token_count


T = TypeVar('T')


class TokenBudgetController:
    """Retries the analysis call with fewer comments per reviewer after token limit errors.

    Each token limit failure halves the interval between the floor of one
    comment and the last rejected cap. The search gives up, re-raising the
    error, once the cap cannot shrink any further.
    """

    MIN_COMMENTS = 1

    def __init__(self, reviewer_groups: List[ReviewerGroup], max_comments: Optional[int] = None,
                 prompt_builder: Callable[[List[ReviewerGroup]], str] = build_analysis_prompt):
        """Initialize the controller.

        Args:
            reviewer_groups: Comments grouped by reviewer
            max_comments: Configured cap applied before the first call (None = no cap)
            prompt_builder: Used to estimate prompt size for progress output
        """
        if max_comments:
            reviewer_groups = limit_comments_per_reviewer(reviewer_groups, max_comments)

        self.reviewer_groups = reviewer_groups
        self.prompt_builder = prompt_builder
        largest_group = max_comments_per_reviewer(reviewer_groups)
        self.current_max_comments = min(max_comments, largest_group) if max_comments else largest_group
        self.current_limit = self.current_max_comments
        self.attempts = 0

    def groups_for_current_limit(self) -> List[ReviewerGroup]:
        """Reviewer groups truncated to the current trial limit."""
        if self.current_limit < max_comments_per_reviewer(self.reviewer_groups):
            return limit_comments_per_reviewer(self.reviewer_groups, self.current_limit)
        return self.reviewer_groups

    def run(self, analyze: Callable[[List[ReviewerGroup]], T]) -> T:
        """Call analyze until it succeeds or the cap cannot be reduced further.

        Args:
            analyze: Performs the model call for the given groups

        Returns:
            Whatever analyze returns on success

        Raises:
            TokenLimitError: If even the smallest reachable cap is too large
        """
        while True:
            groups = self.groups_for_current_limit()
            total_comments = sum(group.total_comments for group in groups)
            estimated_tokens = estimate_token_count(self.prompt_builder(groups))
            self.attempts += 1

            if self.attempts > 1:
                print(dim(f"  Retrying with max {self.current_limit} comments/reviewer "
                          f"({total_comments} total, ~{estimated_tokens:,} tokens)"), flush=True)
            else:
                print(dim(f"  Sending {total_comments} comments (~{estimated_tokens:,} tokens)"), flush=True)

            try:
                return analyze(groups)
            except TokenLimitError:
                self.current_max_comments = self.current_limit
                self.current_limit = (self.MIN_COMMENTS + self.current_max_comments) // 2
                if self.current_limit < self.MIN_COMMENTS or self.current_limit == self.current_max_comments:
                    logging.error(f"Prompt still too large at {self.current_max_comments} comment(s) per reviewer")
                    raise
                logging.info(f"Token limit exceeded after {self.attempts} attempt(s)")
                print(f"{YELLOW}  Token limit exceeded, reducing to {self.current_limit} "
                      f"comments per reviewer...{RESET}", flush=True)
