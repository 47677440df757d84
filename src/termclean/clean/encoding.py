"""
Input acquisition and encoding detection.

Terminal logs saved on other machines are not always UTF-8 (Windows consoles
in particular write cp1252 or UTF-16). This module reads raw bytes from a
file or stdin, enforces the configured size limit and decodes them to text
before the text reaches the cleaning rules.
"""

import codecs
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union

import chardet

from ..config import InputConfig
from ..models import ErrorSeverity, ProcessingError, ProcessingStage

logger = logging.getLogger(__name__)


@dataclass
class DecodedInput:
    """Text decoded from raw input bytes."""
    text: str
    encoding: Optional[str] = None
    confidence: float = 1.0
    used_fallback: bool = False
    source: Optional[str] = None


class EncodingDetector:
    """
    Encoding detection and conversion of raw input to text.

    Tries, in order: a forced encoding, strict UTF-8, chardet detection above
    the confidence threshold, then the configured fallback encodings.
    """

    def __init__(self, config: Optional[InputConfig] = None):
        """
        Initialize EncodingDetector.

        Args:
            config: Input configuration with encoding settings
        """
        self.config = config or InputConfig()
        self.confidence_threshold = self.config.confidence_threshold
        self.fallback_encodings = self.config.fallback_encodings
        self.strict_encoding = self.config.strict_encoding

    def decode(self, data: bytes, source: Optional[str] = None) -> DecodedInput:
        """
        Decode raw bytes to text.

        Args:
            data: Raw byte data
            source: Name of the input, used in error messages

        Returns:
            DecodedInput with the text and the encoding that was used

        Raises:
            ProcessingError: If strict encoding is enabled and no encoding fits
        """
        if not data:
            return DecodedInput(text="", encoding=None, source=source)

        if self.config.encoding:
            return self._decode_forced(data, self.config.encoding, source)

        if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
            try:
                return DecodedInput(text=data.decode('utf-16'), encoding='utf-16', source=source)
            except UnicodeDecodeError:
                logger.debug("UTF-16 BOM present but data does not decode as UTF-16")

        try:
            return DecodedInput(text=data.decode('utf-8-sig'), encoding='utf-8', source=source)
        except UnicodeDecodeError:
            pass

        detection = chardet.detect(data)
        detected_encoding = detection.get('encoding')
        confidence = detection.get('confidence') or 0.0
        logger.debug("chardet detected %s (confidence %.2f) for %s", detected_encoding, confidence, source or "input")

        if detected_encoding and confidence >= self.confidence_threshold:
            try:
                return DecodedInput(
                    text=data.decode(detected_encoding),
                    encoding=detected_encoding.lower(),
                    confidence=confidence,
                    source=source
                )
            except (UnicodeDecodeError, LookupError):
                logger.debug("Detected encoding %s failed to decode, trying fallbacks", detected_encoding)

        text, encoding = self._try_fallback_encodings(data, source)
        logger.info("Decoded %s with fallback encoding %s", source or "input", encoding)
        return DecodedInput(
            text=text,
            encoding=encoding,
            confidence=confidence,
            used_fallback=True,
            source=source
        )

    def _decode_forced(self, data: bytes, encoding: str, source: Optional[str]) -> DecodedInput:
        errors = 'strict' if self.strict_encoding else 'replace'
        try:
            text = data.decode(encoding, errors=errors)
        except (UnicodeDecodeError, LookupError) as e:
            raise ProcessingError(
                stage=ProcessingStage.INGEST.value,
                error_type="EncodingError",
                message=f"Cannot decode input as {encoding}: {e}",
                severity=ErrorSeverity.HIGH,
                document_id=source
            )
        return DecodedInput(text=text, encoding=encoding, source=source)

    def _try_fallback_encodings(self, data: bytes, source: Optional[str]) -> Tuple[str, str]:
        """
        Try fallback encodings when detection fails.

        Returns:
            Tuple of (decoded_text, encoding_used)
        """
        for encoding in self.fallback_encodings:
            try:
                return data.decode(encoding), encoding
            except (UnicodeDecodeError, LookupError):
                continue

        if self.strict_encoding:
            raise ProcessingError(
                stage=ProcessingStage.INGEST.value,
                error_type="EncodingError",
                message="Input does not decode with any configured encoding",
                severity=ErrorSeverity.HIGH,
                document_id=source,
                context={"fallback_encodings": list(self.fallback_encodings)}
            )

        return data.decode('utf-8', errors='replace'), 'utf-8-with-replacement'


def _read_limited(stream: BinaryIO, limit: int, source: str) -> bytes:
    data = stream.read(limit + 1)
    if len(data) > limit:
        raise ProcessingError(
            stage=ProcessingStage.INGEST.value,
            error_type="InputTooLarge",
            message=f"Input exceeds the {limit} byte limit",
            severity=ErrorSeverity.HIGH,
            document_id=source,
            context={"limit": limit}
        )
    return data


def read_input(source: Union[str, Path, None] = None, config: Optional[InputConfig] = None) -> DecodedInput:
    """
    Read and decode input from a file path, or from stdin for ``None``/``"-"``.

    Args:
        source: Path to the input file, ``"-"`` or None for stdin
        config: Input configuration

    Returns:
        DecodedInput with the text

    Raises:
        ProcessingError: If the input is too large, unreadable or undecodable
    """
    config = config or InputConfig()
    limit = config.max_input_bytes()
    detector = EncodingDetector(config)

    if source is None or str(source) == "-":
        data = _read_limited(sys.stdin.buffer, limit, "<stdin>")
        return detector.decode(data, "<stdin>")

    path = Path(source)
    try:
        with open(path, 'rb') as f:
            data = _read_limited(f, limit, str(path))
    except OSError as e:
        raise ProcessingError(
            stage=ProcessingStage.INGEST.value,
            error_type="ReadError",
            message=f"Cannot read {path}: {e.strerror or e}",
            severity=ErrorSeverity.HIGH,
            document_id=str(path)
        )
    return detector.decode(data, str(path))
