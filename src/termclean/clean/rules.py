"""
Cleaning rules for copy-pasted terminal output.

Each rule is a pure function from text to text. The rules run in the order
of ``CLEANING_RULES``; later rules assume the earlier ones already removed
box framing, pipes and redundant whitespace, so the order is part of the
behaviour and must not be changed per call.
"""

import re
from typing import Optional, Tuple

from ..models import CleaningRule
from .json_arrays import clean_json_arrays

# Unicode "Box Drawing" block.
BOX_DRAWING_LINE = re.compile(r'[\u2500-\u257f]+')

# Vertical bars and left joints/corners that open a framed line.
LEADING_FRAME = re.compile(r'^[│┃║├┣╠╰╚]\s*')

# Vertical bars and right joints/corners that close a framed line.
TRAILING_FRAME_CHARS = ('│', '┃', '║', '┤', '┫', '╣', '╮', '╯', '╗', '╝')

LEADING_PIPE = re.compile(r'^\s*\|\s*')

WHITESPACE_RUN = re.compile(r'\s+')

ANSI_SGR = re.compile(r'\x1b\[[0-9;]*m')
PROMPT_MARKER = re.compile(r'^[$>]\s*', re.MULTILINE)
SHELL_LABEL = re.compile(r'^(?:bash|sh|cmd|powershell):\s*', re.MULTILINE | re.IGNORECASE)

EXCESS_BLANK_LINES = re.compile(r'\n\s*\n\s*\n')


def _strip_trailing(line: str, chars: Tuple[str, ...]) -> str:
    # Equivalent to re.sub(r"\s*[chars]$", "", line), linear in len(line).
    if line.endswith(chars):
        return line[:-1].rstrip()
    return line


def remove_box_drawing(text: str) -> str:
    """Drop lines made only of box-drawing characters and strip line frames."""
    lines = []
    for line in text.split('\n'):
        if BOX_DRAWING_LINE.fullmatch(line):
            continue
        line = LEADING_FRAME.sub('', line, count=1)
        lines.append(_strip_trailing(line, TRAILING_FRAME_CHARS))
    return '\n'.join(lines)


def remove_pipe_symbols(text: str) -> str:
    """
    Remove one leading and one trailing ``|`` from every line.

    Pipes inside a line (shell pipelines, table cells) are left alone, so a
    line such as ``|  |  |`` keeps its middle pipe.
    """
    lines = []
    for line in text.split('\n'):
        line = LEADING_PIPE.sub('', line, count=1)
        stripped = line.rstrip()
        if stripped.endswith('|'):
            line = stripped[:-1].rstrip()
        lines.append(line)
    return '\n'.join(lines)


def fix_indentation(text: str) -> str:
    """Collapse whitespace runs to one space and trim every line."""
    return '\n'.join(WHITESPACE_RUN.sub(' ', line).strip() for line in text.split('\n'))


def remove_terminal_artifacts(text: str) -> str:
    """Remove ANSI colour codes, ``$``/``>`` prompts and shell name labels."""
    text = ANSI_SGR.sub('', text)
    text = PROMPT_MARKER.sub('', text)
    text = SHELL_LABEL.sub('', text)
    return text


def collapse_blank_lines(text: str) -> str:
    """Reduce runs of blank lines to a single blank line."""
    return EXCESS_BLANK_LINES.sub('\n\n', text)


def trim_whitespace(text: str) -> str:
    return text.strip()


CLEANING_RULES: Tuple[CleaningRule, ...] = (
    CleaningRule(
        name="Remove box drawing",
        description="Removes terminal box drawing characters",
        transform=remove_box_drawing
    ),
    CleaningRule(
        name="Clean JSON arrays",
        description="Formats JSON arrays with escaped quotes",
        transform=clean_json_arrays
    ),
    CleaningRule(
        name="Remove pipe symbols",
        description="Removes | symbols from line starts and ends",
        transform=remove_pipe_symbols
    ),
    CleaningRule(
        name="Fix indentation",
        description="Normalizes indentation and removes excessive spaces",
        transform=fix_indentation
    ),
    CleaningRule(
        name="Remove terminal artifacts",
        description="Cleans common terminal formatting",
        transform=remove_terminal_artifacts
    ),
    CleaningRule(
        name="Clean extra blank lines",
        description="Reduces multiple blank lines to single blank lines",
        transform=collapse_blank_lines
    ),
    CleaningRule(
        name="Trim whitespace",
        description="Removes leading/trailing whitespace",
        transform=trim_whitespace
    ),
)


def get_rule(name: str) -> Optional[CleaningRule]:
    """Look up a rule by its name."""
    for rule in CLEANING_RULES:
        if rule.name == name:
            return rule
    return None
