"""termclean - Clean copy-pasted terminal output into readable plain text.

Lightweight package initialization. The cleaning API lives in the
``clean`` subpackage:

    from termclean.clean import clean, compute_stats

    cleaned = clean(raw_text)
    stats = compute_stats(raw_text, cleaned)
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
