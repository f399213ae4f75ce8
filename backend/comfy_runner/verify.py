"""
Workflow Pairing Check - Make sure every workflow has a runnable test file.

Workflow definitions live in one directory and the runnable test
variants (with fixed seeds, small sizes, etc.) live in another under the
same file name. This check runs before submission when enabled.
"""

import os
import glob
import logging
from typing import List

from .base import VerificationError
from .config import RunnerConfig

logger = logging.getLogger(__name__)


def find_missing_test_files(workflows_dir: str, test_dir: str) -> List[str]:
    """
    List workflow file names that have no same-named file in test_dir.

    Args:
        workflows_dir: Directory holding *.json workflow definitions
        test_dir: Directory expected to hold one test file per workflow

    Returns:
        Sorted list of missing file names (empty if all are paired)
    """
    missing = []
    for workflow_path in sorted(glob.glob(os.path.join(workflows_dir, "*.json"))):
        name = os.path.basename(workflow_path)
        if not os.path.isfile(os.path.join(test_dir, name)):
            missing.append(name)
    return missing


def verify_test_files(config: RunnerConfig) -> None:
    """
    Run the pairing check if config.run_verify is set.

    Raises:
        VerificationError: If any workflow lacks a test file
    """
    if not config.run_verify:
        logger.info("[Verify] Skipping file verification.")
        return

    logger.info(
        f"[Verify] Verifying that test files in '{config.test_dir}' exist for "
        f"each workflow in '{config.workflows_dir}'..."
    )

    missing = find_missing_test_files(config.workflows_dir, config.test_dir)
    if missing:
        raise VerificationError(
            f"Missing test file(s) in '{config.test_dir}': {', '.join(missing)}",
            missing=missing,
        )

    logger.info("[Verify] File verification passed.")
