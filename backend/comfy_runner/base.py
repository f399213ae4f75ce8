"""
Runner Base Types - Shared data types and exceptions for a workflow run.

This module defines the values passed between the run stages
(submit -> poll -> resolve -> download) and the exception hierarchy
each stage raises. Every exception keeps enough context (URL, status,
response body) to diagnose a failure without re-running it.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


# A workflow is passed through to the service unmodified. Raw bytes/str are
# sent as-is; a dict is serialized to JSON first.
WorkflowPayload = Union[bytes, str, Dict[str, Any]]


@dataclass(frozen=True)
class ArtifactDescriptor:
    """
    A single output file named in a job's history entry.

    Attributes:
        filename: Output file name on the service (never empty once resolved)
        subfolder: Subfolder within the service's storage ("" for root)
        kind: Storage type reported by the service ("output", "temp", ...)
    """
    filename: str
    subfolder: str = ""
    kind: str = ""


@dataclass
class DownloadedArtifact:
    """
    Result of a verified artifact download.

    Attributes:
        path: Local path the artifact was written to
        size: Size in bytes of the file on disk
        declared_size: Size announced by the probe (Content-Length)
        url: URL the artifact was fetched from
    """
    path: str
    size: int
    declared_size: int
    url: str


class RunnerError(Exception):
    """
    Base exception for all run failures.

    Attributes:
        message: Human-readable error message
        url: URL of the request that failed, if any
        status_code: HTTP status of the last response, if any
        body: Raw body of the last response, if any
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code
        self.body = body


class SubmissionError(RunnerError):
    """Raised when the service does not return a usable job id."""
    pass


class PollTimeoutError(RunnerError):
    """Raised when a job does not reach a resolvable state in time."""

    def __init__(
        self,
        message: str,
        job_id: str,
        elapsed: float,
        timeout: float,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(message, url=url, status_code=status_code, body=body)
        self.job_id = job_id
        self.elapsed = elapsed
        self.timeout = timeout


class ResolutionError(RunnerError):
    """Raised when a completed job's history names no artifact."""
    pass


class ArtifactUnavailableError(RunnerError):
    """Raised when the probe shows the artifact missing or empty server-side."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        declared_size: Optional[str] = None
    ):
        super().__init__(message, url=url, status_code=status_code)
        self.declared_size = declared_size


class DownloadIntegrityError(RunnerError):
    """Raised when the fetched artifact is missing or empty on disk."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        path: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message, url=url, status_code=status_code)
        self.path = path


class WorkflowFileError(RunnerError):
    """Raised when the input workflow file is missing or not valid JSON."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class VerificationError(RunnerError):
    """Raised when workflows are missing their matching test files."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []
