"""
Helper Utilities

Common utility functions used across the application.
"""

from pathlib import Path
from typing import Optional
import logging


# Setup logger
logger = logging.getLogger(__name__)


def truncate_text(text: str, max_length: int = 500, suffix: str = "...") -> str:
    """
    Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length, suffix included
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """
    Mask a secret for display, keeping only its last characters.

    Example:
        >>> mask_secret("sk_test_1234567890")
        '**************7890'
    """
    if not value:
        return "<not set>"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def load_prompt(filename: str, prompts_dir: Optional[Path] = None) -> str:
    """
    Load an agent prompt from a text file.

    Args:
        filename: Name of the prompt file (e.g., "stripe_agent.txt")
        prompts_dir: Directory containing prompts (defaults to the bundled templates)

    Returns:
        The prompt text content

    Raises:
        FileNotFoundError: If prompt file doesn't exist

    Example:
        >>> prompt = load_prompt("weather_agent.txt")
    """
    if prompts_dir is None:
        prompts_dir = Path(__file__).parent.parent / "core" / "prompts" / "templates"

    prompt_path = prompts_dir / filename

    if not prompt_path.exists():
        raise FileNotFoundError(
            f"Prompt file not found: {prompt_path}\n"
            f"Looking in: {prompts_dir}"
        )

    try:
        content = prompt_path.read_text(encoding="utf-8")
        logger.debug(f"Loaded prompt from {filename}")
        return content
    except Exception as e:
        logger.error(f"Error loading prompt {filename}: {e}")
        raise
