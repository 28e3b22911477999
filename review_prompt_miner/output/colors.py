"""ANSI color codes for terminal output."""

GREEN = '\033[92m'
YELLOW = '\033[93m'
RED = '\033[91m'
CYAN = '\033[96m'
DIM = '\033[2m'
BOLD = '\033[1m'
RESET = '\033[0m'


def label(text: str, width: int) -> str:
    """Left-align a label to a fixed width."""
    return f"{text:<{width}}"


def format_step(step: int, total: int, title: str) -> str:
    return f"{BOLD}{CYAN}[{step}/{total}]{RESET} {BOLD}{title}{RESET}"


def format_success(message: str) -> str:
    return f"{GREEN}✓{RESET} {message}"


def dim(text: str) -> str:
    return f"{DIM}{text}{RESET}"
