#!/usr/bin/env python3
"""
Review Prompt Miner
Mines PR review comments of an organization's top reviewers and turns them into a PR review agent prompt.
"""

import sys

from review_prompt_miner.cli import main


if __name__ == "__main__":
    sys.exit(main())
