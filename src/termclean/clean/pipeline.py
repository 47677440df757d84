"""
Cleaning pipeline that applies every cleaning rule in catalog order.

This module provides the plain ``clean`` function used by callers that only
need the cleaned string, and ``CleaningPipeline`` which also records which
rules changed the text, the resulting statistics and batch aggregates.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..models import CleaningRule, ErrorSeverity, ProcessingError, ProcessingStage, TextStats
from .rules import CLEANING_RULES
from .stats import compute_stats

logger = logging.getLogger(__name__)


def apply_rules(text: str, rules: Iterable[CleaningRule]) -> str:
    """Apply a sequence of rules to ``text``, each receiving the previous output."""
    for rule in rules:
        text = rule.apply(text)
    return text


def clean(text: Optional[str]) -> str:
    """
    Clean terminal output by applying every rule in order.

    Args:
        text: Raw copy-pasted text; None is treated as empty

    Returns:
        Cleaned text, ``""`` for empty input
    """
    if not text:
        return ""

    return apply_rules(text, CLEANING_RULES)


@dataclass
class CleaningResult:
    """Result of cleaning a single text."""
    original_text: str
    cleaned_text: str
    stats: TextStats
    rules_applied: List[str] = field(default_factory=list)
    document_id: Optional[str] = None
    processing_time: float = 0.0

    def get_length_reduction(self) -> int:
        """Get absolute length reduction in characters."""
        return len(self.original_text) - len(self.cleaned_text)

    def get_compression_ratio(self) -> float:
        """Get compression ratio (0.0 = no compression, 1.0 = complete removal)."""
        if not self.original_text:
            return 0.0
        return self.get_length_reduction() / len(self.original_text)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "document_id": self.document_id,
            "cleaned_text": self.cleaned_text,
            "rules_applied": self.rules_applied,
            "stats": self.stats.to_dict(),
            "processing_time": self.processing_time
        }


@dataclass
class BatchCleaningResult:
    """Result of batch cleaning operation."""
    total_documents: int
    processed_documents: int = 0
    failed_documents: int = 0

    document_results: Dict[str, CleaningResult] = field(default_factory=dict)
    errors: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    total_original_length: int = 0
    total_cleaned_length: int = 0

    def add_failure(self, doc_id: str, error: ProcessingError) -> None:
        """
        Record a failed document.

        A document that already has a result (e.g. it failed on write) is moved
        from the results to the errors; an unknown one is added to the total.
        """
        if doc_id in self.document_results:
            result = self.document_results.pop(doc_id)
            self.processed_documents -= 1
            self.total_original_length -= len(result.original_text)
            self.total_cleaned_length -= len(result.cleaned_text)
        else:
            self.total_documents += 1
        self.failed_documents += 1
        self.errors[doc_id] = error.to_dict()

    def get_success_rate(self) -> float:
        """Get processing success rate."""
        if self.total_documents == 0:
            return 0.0
        return self.processed_documents / self.total_documents

    def get_overall_compression_ratio(self) -> float:
        """Get overall compression ratio across all documents."""
        if self.total_original_length == 0:
            return 0.0
        return (self.total_original_length - self.total_cleaned_length) / self.total_original_length


class CleaningPipeline:
    """
    Applies the fixed rule catalog and reports what happened.

    The catalog is shared and read-only, so one pipeline instance can be used
    from several threads.
    """

    def __init__(self):
        self.rules: tuple = CLEANING_RULES

    def clean_text(self, text: Optional[str], document_id: Optional[str] = None) -> CleaningResult:
        """
        Clean a single text and collect statistics.

        Args:
            text: Input text to clean
            document_id: Optional document identifier

        Returns:
            CleaningResult with cleaned text and metadata
        """
        start_time = time.perf_counter()
        original = text or ""

        result = CleaningResult(
            original_text=original,
            cleaned_text="",
            stats=compute_stats(original, ""),
            document_id=document_id
        )

        if original:
            current = original
            for rule in self.rules:
                updated = rule.apply(current)
                if updated != current:
                    logger.debug("%s changed text (%d -> %d chars)", rule.name, len(current), len(updated))
                    result.rules_applied.append(rule.name)
                current = updated
            result.cleaned_text = current
            result.stats = compute_stats(original, current)

        result.processing_time = time.perf_counter() - start_time
        return result

    def clean_documents(self, documents: Dict[str, Optional[str]]) -> BatchCleaningResult:
        """
        Clean multiple documents.

        Args:
            documents: Dictionary mapping document IDs to content

        Returns:
            BatchCleaningResult with individual and aggregate results
        """
        batch_result = BatchCleaningResult(total_documents=len(documents))

        for doc_id, content in documents.items():
            if content is not None and not isinstance(content, str):
                error = ProcessingError(
                    stage=ProcessingStage.CLEAN.value,
                    error_type="InvalidContent",
                    message=f"expected text, got {type(content).__name__}",
                    severity=ErrorSeverity.MEDIUM,
                    document_id=doc_id
                )
                logger.warning("Skipping document: %s", error)
                batch_result.failed_documents += 1
                batch_result.errors[doc_id] = error.to_dict()
                continue

            cleaning_result = self.clean_text(content, doc_id)
            batch_result.document_results[doc_id] = cleaning_result
            batch_result.processed_documents += 1
            batch_result.total_original_length += len(cleaning_result.original_text)
            batch_result.total_cleaned_length += len(cleaning_result.cleaned_text)

        return batch_result

    def describe_rules(self) -> List[Dict[str, Any]]:
        """List the active rules in the order they run."""
        return [
            {"position": position, **rule.to_dict()}
            for position, rule in enumerate(self.rules, start=1)
        ]
