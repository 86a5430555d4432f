from __future__ import annotations

from typing import List, Optional


class BrainError(Exception):
    """Base class for everything the resolution pipeline raises on purpose."""


class InputInvalid(BrainError):
    """Empty, oversized or unsafe user text. Rejected before any matching."""

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason


class MatchNotFound(BrainError):
    """A dish, restaurant or location could not be matched."""

    def __init__(self, kind: str, query: str, suggestions: Optional[List[str]] = None):
        super().__init__(f"{kind} not found: {query!r}")
        self.kind = kind
        self.query = query
        self.suggestions = list(suggestions or [])


class AmbiguousMatch(BrainError):
    """Several equally valid candidates; the user has to pick one."""

    def __init__(self, kind: str, query: str, options: List[str]):
        super().__init__(f"{kind} ambiguous: {query!r} -> {options}")
        self.kind = kind
        self.query = query
        self.options = list(options)


class ExternalServiceError(BrainError):
    """Catalog or generative-model collaborator failed."""

    def __init__(self, service: str, message: str = ""):
        super().__init__(f"{service}: {message}" if message else service)
        self.service = service


class ExternalServiceTimeout(ExternalServiceError):
    def __init__(self, service: str, timeout_s: float):
        super().__init__(service, f"timed out after {timeout_s:.1f}s")
        self.timeout_s = timeout_s


class MalformedModelOutput(ExternalServiceError):
    def __init__(self, message: str):
        super().__init__("llm", message)
