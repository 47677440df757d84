"""Statistics over an original/cleaned text pair."""

from typing import Optional

from ..models import TextStats


def compute_stats(original: Optional[str], cleaned: Optional[str]) -> TextStats:
    """
    Compute line and character metrics for a cleaning run.

    Lines are counted on the original text as the number of ``\\n`` plus
    one, so an empty input still counts as one line. Lengths are in code
    points; ``characters_removed`` is negative when cleaning added text.

    Args:
        original: Text before cleaning
        cleaned: Text after cleaning

    Returns:
        TextStats for the pair
    """
    original = original or ""
    cleaned = cleaned or ""

    return TextStats(
        line_count=original.count('\n') + 1,
        character_count=len(original),
        characters_removed=len(original) - len(cleaned)
    )
