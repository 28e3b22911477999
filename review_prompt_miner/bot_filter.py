"""Bot account filtering for review activity statistics."""

import re
import logging
from typing import List, Pattern


# Default patterns for automation accounts (regular expressions)
DEFAULT_BOT_PATTERNS = [
    r'\[bot\]$',  # GitHub Apps: dependabot[bot], renovate[bot]
    r'(?i)-bot$',  # custom bots: propel-code-bot
    r'(?i)^circleci-app$',
    r'(?i)^wiz-inc-',
    r'(?i)^github-actions$',
    r'(?i)^dependabot$',
    r'(?i)^renovate$',
    r'(?i)^codecov$',
    r'(?i)^sonarcloud$',
]


class BotFilter:
    """Identifies automated accounts by matching logins against patterns."""

    def __init__(self, bot_patterns: List[str] = None):
        """Initialize the bot filter.

        Args:
            bot_patterns: Regular expressions matched against logins (uses default if None)
        """
        self.bot_patterns = bot_patterns if bot_patterns is not None else DEFAULT_BOT_PATTERNS
        self._compiled: List[Pattern] = [re.compile(pattern) for pattern in self.bot_patterns]

    def is_bot(self, login: str) -> bool:
        """Check if a login belongs to an automated account.

        Args:
            login: GitHub login to check

        Returns:
            True if any pattern matches, False otherwise
        """
        if any(pattern.search(login) for pattern in self._compiled):
            logging.debug(f"Ignoring bot account: {login}")
            return True
        return False
