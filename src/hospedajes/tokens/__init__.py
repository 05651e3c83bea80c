"""Token Stream Adapter — extractor output to uniform positioned tokens.

Public API
----------
- :func:`extract_page_tokens` — tokens from an open pdfplumber Page
- :func:`extract_document_tokens` — tokens for every page of a PDF path or bytes
- :class:`TokenPageResult` — per-page extraction result container
- :func:`token_from_item` / :func:`normalize_items` — heterogeneous item normalisation
- :func:`split_text_line` — fragment carving for line-oriented text input
"""

from .adapter import clean_fragment_text, normalize_items, split_text_line, token_from_item
from .extract import TokenPageResult, extract_document_tokens, extract_page_tokens

__all__ = [
    "TokenPageResult",
    "clean_fragment_text",
    "extract_document_tokens",
    "extract_page_tokens",
    "normalize_items",
    "split_text_line",
    "token_from_item",
]
