"""
Job Poller - Wait for a submitted job to produce an artifact.

The poller hits the history endpoint on a fixed cadence. Any non-200
status means the job is still running. A 200 status is final: either the
history names an artifact, or the job produced nothing usable.
"""

import json
import math
import time
import logging
import requests
from typing import Optional, Tuple

from .base import ArtifactDescriptor, PollTimeoutError, ResolutionError
from .config import RunnerConfig
from .resolve import resolve_artifact

logger = logging.getLogger(__name__)

HTTP_OK = 200

# Floor for a status call made when the poll budget is already spent
MIN_REQUEST_TIMEOUT = 0.1


class JobPoller:
    """
    Polls /history/{job_id} until the job resolves or the timeout elapses.

    The cadence is a fixed interval with no backoff. Each status request is
    bounded by config.request_timeout and by the time left in the poll, so
    a hung call cannot hold the run much past the overall poll timeout.

    Usage:
        poller = JobPoller(config)
        descriptor = poller.poll(job_id)
        descriptor = poller.poll(job_id, timeout=10, interval=1)
    """

    def __init__(self, config: RunnerConfig):
        self.config = config

    def history_url(self, job_id: str) -> str:
        return f"{self.config.base_url}/history/{job_id}"

    def poll(
        self,
        job_id: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None
    ) -> ArtifactDescriptor:
        """
        Poll job status until an artifact is available.

        Args:
            job_id: Job id returned by the submitter
            timeout: Seconds to wait before giving up (default: config.poll_timeout)
            interval: Seconds to sleep between polls (default: config.poll_interval)

        Returns:
            Descriptor of the job's first image artifact

        Raises:
            ResolutionError: If the job completed without a usable artifact
            PollTimeoutError: If the job did not complete within the timeout
            ValueError: If timeout or interval is not a usable number
        """
        timeout = self.config.poll_timeout if timeout is None else timeout
        interval = self.config.poll_interval if interval is None else interval
        if not math.isfinite(timeout) or timeout < 0:
            raise ValueError(f"Poll timeout must be a finite number >= 0, got {timeout}")
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError(f"Poll interval must be a finite number > 0, got {interval}")
        url = self.history_url(job_id)

        start_time = time.monotonic()
        poll_count = 0
        last_status: Optional[int] = None
        last_body: Optional[str] = None

        logger.info(
            f"[Poll] Polling history for {job_id} "
            f"(interval={interval}s, timeout={timeout}s)"
        )

        while True:
            poll_count += 1
            remaining = timeout - (time.monotonic() - start_time)
            status_code, body = self._fetch_status(url, remaining)
            if status_code is not None:
                last_status, last_body = status_code, body

            elapsed = time.monotonic() - start_time
            logger.debug(
                f"[Poll] Poll #{poll_count} for {job_id}: HTTP {status_code} "
                f"(elapsed: {elapsed:.1f}s)"
            )

            if status_code == HTTP_OK:
                descriptor = self._resolve(job_id, url, body)
                logger.info(
                    f"[Poll] Artifact ready after {poll_count} poll(s): "
                    f"{descriptor.filename} ({descriptor.kind} in '{descriptor.subfolder}')"
                )
                return descriptor

            if elapsed >= timeout:
                logger.error(f"[Poll] Last response body: {last_body}")
                raise PollTimeoutError(
                    f"Polling timed out after {timeout} seconds: no successful "
                    f"response for {job_id} ({poll_count} polls)",
                    job_id=job_id,
                    elapsed=elapsed,
                    timeout=timeout,
                    url=url,
                    status_code=last_status,
                    body=last_body,
                )

            time.sleep(interval)

    def _fetch_status(self, url: str, remaining: float) -> Tuple[Optional[int], Optional[str]]:
        """Issue one status request; (None, None) on a transport failure."""
        request_timeout = min(self.config.request_timeout, max(remaining, MIN_REQUEST_TIMEOUT))
        try:
            response = requests.get(url, timeout=request_timeout)
        except requests.RequestException as e:
            logger.warning(f"[Poll] Status request failed, will retry: {e}")
            return None, None
        return response.status_code, response.text

    def _resolve(self, job_id: str, url: str, body: str) -> ArtifactDescriptor:
        try:
            history = json.loads(body)
        except ValueError:
            raise ResolutionError(
                f"History for {job_id} is not valid JSON",
                url=url,
                status_code=HTTP_OK,
                body=body,
            )

        descriptor = resolve_artifact(history)
        if descriptor is None:
            raise ResolutionError(
                f"Filename not found in history for {job_id}",
                url=url,
                status_code=HTTP_OK,
                body=body,
            )
        return descriptor
