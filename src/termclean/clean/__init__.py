"""
Rule-based cleaning of copy-pasted terminal output.

This module provides:
- The ordered catalog of cleaning rules (box drawing, JSON arrays, pipes,
  indentation, terminal artifacts, blank lines, outer whitespace)
- The cleaning pipeline and its result records
- Statistics over an original/cleaned pair
- Input decoding for files and stdin
"""

from .rules import (
    CLEANING_RULES,
    get_rule,
    remove_box_drawing,
    remove_pipe_symbols,
    fix_indentation,
    remove_terminal_artifacts,
    collapse_blank_lines,
    trim_whitespace
)

from .json_arrays import (
    ArrayParseResult,
    clean_json_arrays,
    parse_array
)

from .pipeline import (
    CleaningPipeline,
    CleaningResult,
    BatchCleaningResult,
    apply_rules,
    clean
)

from .stats import compute_stats

from .encoding import (
    EncodingDetector,
    DecodedInput,
    read_input
)

__all__ = [
    # Rules
    'CLEANING_RULES',
    'get_rule',
    'remove_box_drawing',
    'clean_json_arrays',
    'remove_pipe_symbols',
    'fix_indentation',
    'remove_terminal_artifacts',
    'collapse_blank_lines',
    'trim_whitespace',

    # JSON arrays
    'ArrayParseResult',
    'parse_array',

    # Pipeline
    'CleaningPipeline',
    'CleaningResult',
    'BatchCleaningResult',
    'apply_rules',
    'clean',

    # Statistics
    'compute_stats',

    # Input
    'EncodingDetector',
    'DecodedInput',
    'read_input'
]
