"""
Shared message types and errors passed between workers, coordinator and sink.
"""
from typing import NamedTuple, Optional


class BusterError(Exception):
    pass


class ConfigurationError(BusterError):
    """Bad or missing input, raised before any worker is started."""


class TransportError(BusterError):
    """A single request failed or its status could not be classified."""


class BustInterrupted(BusterError):
    """The run was cancelled by the operator."""


class ThreadResponse(NamedTuple):
    # None when the word was skipped; `error` then says why
    status_code: Optional[int]
    word: Optional[str]
    done: bool
    error: Optional[str] = None


class ResultRecord(NamedTuple):
    status_code: int
    url: str

    def __str__(self) -> str:
        return f"{self.status_code}: {self.url}"


class BustSummary(NamedTuple):
    total: int
    completed: int
    matched: int
    skipped: int
