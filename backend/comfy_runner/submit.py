"""
Job Submitter - Post a workflow to the service and return its job id.

The workflow body is sent unmodified; the service validates it. A
submission that does not yield a job id is terminal for the run.
"""

import os
import json
import logging
import requests
from typing import Any, Optional

from .base import SubmissionError, WorkflowFileError, WorkflowPayload
from .config import RunnerConfig

logger = logging.getLogger(__name__)

JOB_ID_FIELD = "prompt_id"

# jq -r renders a missing field as the literal "null"; treat it the same
# as an absent id.
_NULL_SENTINELS = ("", "null")


def load_workflow(path: str) -> bytes:
    """
    Read a workflow file for submission.

    The bytes are returned as-is so the service sees exactly what is on
    disk; they are only parsed to confirm the file holds JSON.

    Args:
        path: Path to a workflow JSON file

    Returns:
        Raw file contents

    Raises:
        WorkflowFileError: If the file is missing, unreadable or not JSON
    """
    if not os.path.isfile(path):
        raise WorkflowFileError(f"Workflow file not found: {path}", path=path)

    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise WorkflowFileError(f"Failed to read workflow file {path}: {e}", path=path) from e

    try:
        json.loads(data)
    except ValueError as e:
        raise WorkflowFileError(f"Workflow file {path} is not valid JSON: {e}", path=path) from e

    return data


class JobSubmitter:
    """
    Submits workflows to the service's /prompt endpoint.

    Usage:
        submitter = JobSubmitter(config)
        job_id = submitter.submit(load_workflow("temp/flux.json"))
    """

    def __init__(self, config: RunnerConfig):
        self.config = config
        self.url = f"{config.base_url}/prompt"

    def submit(self, payload: WorkflowPayload) -> str:
        """
        Submit a workflow and return the job id assigned by the service.

        Args:
            payload: Workflow JSON as bytes, str or dict

        Returns:
            Job id string, exactly as returned by the service

        Raises:
            SubmissionError: If the request fails or no job id is returned
        """
        if isinstance(payload, dict):
            payload = json.dumps(payload)

        logger.info(f"[Submit] Submitting workflow to {self.url}")

        try:
            response = requests.post(
                self.url,
                data=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise SubmissionError(f"Failed to submit workflow: {e}", url=self.url) from e

        body = response.text
        logger.debug(f"[Submit] Response ({response.status_code}): {body}")

        try:
            result = response.json()
        except ValueError:
            raise SubmissionError(
                f"Failed to extract {JOB_ID_FIELD} from response "
                f"(HTTP {response.status_code}, body is not JSON): {body}",
                url=self.url,
                status_code=response.status_code,
                body=body,
            )

        job_id = _extract_job_id(result)
        if job_id is None:
            raise SubmissionError(
                f"Failed to extract {JOB_ID_FIELD} from response "
                f"(HTTP {response.status_code}): {body}",
                url=self.url,
                status_code=response.status_code,
                body=body,
            )

        logger.info(f"[Submit] Received {JOB_ID_FIELD}: {job_id}")
        return job_id


def _extract_job_id(result: Any) -> Optional[str]:
    if not isinstance(result, dict):
        return None

    job_id = result.get(JOB_ID_FIELD)
    # jq -r prints numeric ids as plain text
    if isinstance(job_id, int) and not isinstance(job_id, bool):
        job_id = str(job_id)
    if not isinstance(job_id, str) or job_id.strip() in _NULL_SENTINELS:
        return None
    return job_id
