"""
Exceptions raised by the review mining pipeline.

Fetch and schema errors carry the endpoint and a snippet of the raw payload
so failures can be diagnosed without re-fetching.
"""

from typing import Optional


class ReviewCorpusError(Exception):
    """Base class for all reviewcorpus errors."""


class FetchError(ReviewCorpusError):
    """Network/transport failure or an undecodable feed payload."""

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 snippet: Optional[str] = None):
        self.endpoint = endpoint
        self.snippet = snippet
        details = message
        if endpoint:
            details += f" (endpoint: {endpoint})"
        if snippet:
            details += f" [payload: {snippet!r}]"
        super().__init__(details)


class SchemaError(ReviewCorpusError, ValueError):
    """Feed payload is missing the structure or fields we expect."""

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 snippet: Optional[str] = None):
        self.endpoint = endpoint
        self.snippet = snippet
        details = message
        if endpoint:
            details += f" (endpoint: {endpoint})"
        if snippet:
            details += f" [payload: {snippet!r}]"
        super().__init__(details)


class ConfigError(ReviewCorpusError, ValueError):
    """Invalid pipeline configuration (unknown step, bad parameters)."""


class NoVarianceError(ReviewCorpusError, ArithmeticError):
    """Correlation requested for a term whose count vector is constant."""

    def __init__(self, term: str):
        self.term = term
        super().__init__(
            f"Term '{term}' has the same count in every document; "
            "correlation is undefined"
        )
