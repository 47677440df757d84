"""
Core data models for termclean.

This module contains the data structures shared by the cleaning rules, the
pipeline and the command-line front end: the rule record, the text statistics
record and the processing error raised outside the cleaning core.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ProcessingStage(Enum):
    """Stages a piece of text passes through."""
    INGEST = "ingest"
    CLEAN = "clean"
    OUTPUT = "output"


@dataclass(frozen=True)
class CleaningRule:
    """
    A named, pure text-to-text transformation.

    Rules are immutable once defined; the ordered catalog of rules lives in
    ``termclean.clean.rules.CLEANING_RULES``.
    """
    name: str
    description: str
    transform: Callable[[str], str] = field(repr=False, compare=False)

    def apply(self, text: str) -> str:
        """Apply the rule to ``text`` and return the transformed text."""
        return self.transform(text)

    def to_dict(self) -> Dict[str, str]:
        """Convert rule metadata to dictionary."""
        return {
            "name": self.name,
            "description": self.description
        }


@dataclass(frozen=True)
class TextStats:
    """Metrics derived from an (original, cleaned) text pair."""
    line_count: int
    character_count: int
    characters_removed: int

    def to_dict(self) -> Dict[str, int]:
        """Convert statistics to dictionary."""
        return {
            "line_count": self.line_count,
            "character_count": self.character_count,
            "characters_removed": self.characters_removed
        }


@dataclass(eq=False)
class ProcessingError(Exception):
    """Represents an error that occurred while acquiring, configuring or writing text."""
    stage: str
    error_type: str
    message: str
    severity: ErrorSeverity
    document_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    context: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if self.document_id:
            return f"{self.stage}: {self.message} (document: {self.document_id})"
        return f"{self.stage}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "stage": self.stage,
            "error_type": self.error_type,
            "message": self.message,
            "severity": self.severity.value,
            "document_id": self.document_id,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context
        }
