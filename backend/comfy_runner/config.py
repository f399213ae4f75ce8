"""
Runner Configuration - Scalar settings shared by every run stage.

Settings come from environment variables with compiled defaults. The
config object is built once and handed to each component, so components
never read the environment themselves.
"""

import os
import math
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://localhost:8188"
DEFAULT_POLL_TIMEOUT = 300.0  # seconds
DEFAULT_POLL_INTERVAL = 5.0   # seconds
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_DOWNLOAD_TIMEOUT = 60.0
DEFAULT_WORKFLOWS_DIR = "workflows"
DEFAULT_TEST_DIR = "temp"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class RunnerConfig:
    """
    Configuration for a single workflow run.

    Attributes:
        base_url: Service base URL, without trailing slash
        poll_timeout: Seconds to wait for a job before giving up
        poll_interval: Fixed sleep between status polls
        output_dir: Local directory artifacts are written to
        request_timeout: Per-call bound for submit, status and probe requests
        download_timeout: Per-call bound for the artifact fetch
        workflows_dir: Directory of workflow definitions (pairing check)
        test_dir: Directory of runnable test workflows (pairing check)
        run_verify: Whether to run the pairing check before submitting
    """
    base_url: str = DEFAULT_BASE_URL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    output_dir: str = DEFAULT_OUTPUT_DIR
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
    workflows_dir: str = DEFAULT_WORKFLOWS_DIR
    test_dir: str = DEFAULT_TEST_DIR
    run_verify: bool = False

    def __post_init__(self):
        self.base_url = (self.base_url or "").strip().rstrip("/")
        if not self.base_url:
            raise ValueError("COMFYUI_URL must not be empty")

        for name, value in (
            ("POLL_TIMEOUT", self.poll_timeout),
            ("POLL_INTERVAL", self.poll_interval),
            ("REQUEST_TIMEOUT", self.request_timeout),
            ("DOWNLOAD_TIMEOUT", self.download_timeout),
        ):
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value}")

        if self.poll_timeout < 0:
            raise ValueError(f"POLL_TIMEOUT must be >= 0, got {self.poll_timeout}")
        if self.poll_interval <= 0:
            raise ValueError(f"POLL_INTERVAL must be > 0, got {self.poll_interval}")
        if self.request_timeout <= 0:
            raise ValueError(f"REQUEST_TIMEOUT must be > 0, got {self.request_timeout}")
        if self.download_timeout <= 0:
            raise ValueError(f"DOWNLOAD_TIMEOUT must be > 0, got {self.download_timeout}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RunnerConfig":
        """
        Build a config from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            RunnerConfig with overrides applied over the defaults

        Raises:
            ValueError: If a numeric variable is malformed or out of range
        """
        env = os.environ if environ is None else environ

        return cls(
            base_url=env.get("COMFYUI_URL", DEFAULT_BASE_URL),
            poll_timeout=_get_float(env, "POLL_TIMEOUT", DEFAULT_POLL_TIMEOUT),
            poll_interval=_get_float(env, "POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            output_dir=env.get("OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
            request_timeout=_get_float(env, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            download_timeout=_get_float(env, "DOWNLOAD_TIMEOUT", DEFAULT_DOWNLOAD_TIMEOUT),
            workflows_dir=env.get("WORKFLOWS_DIR", DEFAULT_WORKFLOWS_DIR),
            test_dir=env.get("TEST_DIR", DEFAULT_TEST_DIR),
            run_verify=env.get("RUN_VERIFY", "false").strip().lower() in _TRUE_VALUES,
        )


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
