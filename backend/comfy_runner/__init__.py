"""
Comfy Runner Package - Smoke-test workflows against a remote processing service.

A run submits a workflow JSON to the service, polls the job history until
an output image is named, then probes and downloads that image:

    submit (POST /prompt) -> poll (GET /history/{id}) -> download (/view)

Usage:
    from comfy_runner import RunnerConfig, WorkflowRunner

    runner = WorkflowRunner(RunnerConfig.from_env())
    artifact = runner.run_file("temp/flux.json")
    print(artifact.path, artifact.size)

Or from the command line:
    python -m comfy_runner temp/flux.json
"""

# Types and exceptions
from .base import (
    WorkflowPayload,
    ArtifactDescriptor,
    DownloadedArtifact,
    RunnerError,
    SubmissionError,
    PollTimeoutError,
    ResolutionError,
    ArtifactUnavailableError,
    DownloadIntegrityError,
    WorkflowFileError,
    VerificationError,
)

# Configuration
from .config import RunnerConfig

# Run stages
from .submit import JobSubmitter, load_workflow
from .resolve import resolve_artifact
from .poll import JobPoller
from .download import ArtifactStoreClient, build_view_url
from .verify import find_missing_test_files, verify_test_files
from .runner import WorkflowRunner

__all__ = [
    # Types
    'WorkflowPayload',
    'ArtifactDescriptor',
    'DownloadedArtifact',
    # Exceptions
    'RunnerError',
    'SubmissionError',
    'PollTimeoutError',
    'ResolutionError',
    'ArtifactUnavailableError',
    'DownloadIntegrityError',
    'WorkflowFileError',
    'VerificationError',
    # Configuration
    'RunnerConfig',
    # Stages
    'JobSubmitter',
    'load_workflow',
    'resolve_artifact',
    'JobPoller',
    'ArtifactStoreClient',
    'build_view_url',
    'find_missing_test_files',
    'verify_test_files',
    'WorkflowRunner',
]
