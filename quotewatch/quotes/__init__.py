from .extractor import (
    ExtractionFailed,
    QuoteSummary,
    extract_close_prices,
    previous_close_reference,
    summarize_quote,
)

__all__ = [
    "ExtractionFailed",
    "QuoteSummary",
    "extract_close_prices",
    "previous_close_reference",
    "summarize_quote",
]
