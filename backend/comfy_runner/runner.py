"""
Run Orchestrator - Submit a workflow, wait for it, and download the result.

A run is strictly sequential: submit -> poll (resolving each 200 status)
-> download. The first failing stage ends the run with its RunnerError;
nothing is retried and no partial result is reported.
"""

import logging
from typing import Optional

from .base import DownloadedArtifact, WorkflowPayload
from .config import RunnerConfig
from .download import ArtifactStoreClient
from .poll import JobPoller
from .submit import JobSubmitter, load_workflow
from .verify import verify_test_files

logger = logging.getLogger(__name__)


class WorkflowRunner:
    """
    Sequences the run stages for a single workflow.

    Stages can be swapped out at construction (e.g. for tests); by default
    each is built from the same config.

    Usage:
        runner = WorkflowRunner(RunnerConfig.from_env())
        artifact = runner.run_file("temp/flux.json")
    """

    def __init__(
        self,
        config: RunnerConfig,
        submitter: Optional[JobSubmitter] = None,
        poller: Optional[JobPoller] = None,
        store: Optional[ArtifactStoreClient] = None
    ):
        self.config = config
        self.submitter = submitter or JobSubmitter(config)
        self.poller = poller or JobPoller(config)
        self.store = store or ArtifactStoreClient(config)

    def run(self, payload: WorkflowPayload) -> DownloadedArtifact:
        """
        Run one workflow end to end.

        Args:
            payload: Workflow JSON to submit

        Returns:
            The downloaded, verified artifact

        Raises:
            RunnerError: From whichever stage failed first
        """
        job_id = self.submitter.submit(payload)
        descriptor = self.poller.poll(job_id)
        return self.store.download(descriptor)

    def run_file(self, path: str) -> DownloadedArtifact:
        """
        Run the workflow stored at path, with the optional pairing check first.

        Raises:
            WorkflowFileError: If the file is missing or not JSON
            VerificationError: If the pairing check is enabled and fails
            RunnerError: From whichever run stage failed first
        """
        logger.info(f"[Runner] === Running test for: {path} ===")

        verify_test_files(self.config)
        payload = load_workflow(path)
        artifact = self.run(payload)

        logger.info(f"[Runner] === Test completed successfully: {artifact.path} ===")
        return artifact
