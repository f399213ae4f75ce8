"""
Artifact Store Client - Download a job's output file and verify it.

Downloads happen in two phases:
- Probe: HEAD the /view URL and require a positive Content-Length
- Fetch: GET the same URL and stream it to {output_dir}/{filename}

The probe exists because a job can be reported complete before its file
is flushed to the service's storage. An absent or zero length surfaces as
ArtifactUnavailableError instead of an empty file on disk. After the fetch
the file is checked again; an empty or missing file is removed and
reported as DownloadIntegrityError.
"""

import os
import re
import logging
import requests
from typing import Optional
from urllib.parse import urlencode

from .base import (
    ArtifactDescriptor,
    ArtifactUnavailableError,
    DownloadedArtifact,
    DownloadIntegrityError,
)
from .config import RunnerConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192

_SIZE_PATTERN = re.compile(r"[0-9]+")


def build_view_url(base_url: str, descriptor: ArtifactDescriptor) -> str:
    """
    Build the /view URL for an artifact.

    subfolder and type are always sent, even when empty.

    Example:
        build_view_url("http://host:8188", ArtifactDescriptor("out.png", "", "output"))
        # Returns: "http://host:8188/view?filename=out.png&subfolder=&type=output"
    """
    query = urlencode({
        "filename": descriptor.filename,
        "subfolder": descriptor.subfolder,
        "type": descriptor.kind,
    })
    return f"{base_url}/view?{query}"


def _remove_partial(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[Download] Could not remove partial file {path}: {e}")


class ArtifactStoreClient:
    """
    Probes and downloads artifacts from the service's /view endpoint.

    Usage:
        client = ArtifactStoreClient(config)
        artifact = client.download(descriptor)
        print(artifact.path, artifact.size)
    """

    def __init__(self, config: RunnerConfig):
        self.config = config

    def probe(self, url: str) -> int:
        """
        Read the declared size of an artifact without transferring it.

        Args:
            url: /view URL of the artifact

        Returns:
            Declared size in bytes (always > 0)

        Raises:
            ArtifactUnavailableError: If the request fails or the size is
                missing, non-numeric or zero
        """
        logger.info(f"[Download] Checking artifact at: {url}")

        try:
            response = requests.head(
                url,
                allow_redirects=True,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise ArtifactUnavailableError(f"Probe request failed: {e}", url=url) from e

        if response.status_code >= 400:
            raise ArtifactUnavailableError(
                f"Probe returned HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        raw_size = response.headers.get("Content-Length")
        size = raw_size.strip() if raw_size is not None else ""
        if not _SIZE_PATTERN.fullmatch(size) or int(size) == 0:
            raise ArtifactUnavailableError(
                f"Invalid or empty file size: {raw_size!r}",
                url=url,
                status_code=response.status_code,
                declared_size=raw_size,
            )

        return int(size)

    def fetch(self, url: str, dest: str) -> int:
        """
        Stream an artifact to dest and return the size on disk.

        Any partial file is removed before an error is raised.

        Raises:
            DownloadIntegrityError: If the transfer or write fails, or the
                written file is missing or empty
        """
        try:
            with requests.get(url, stream=True, timeout=self.config.download_timeout) as response:
                response.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        f.write(chunk)
        except requests.RequestException as e:
            _remove_partial(dest)
            status_code = e.response.status_code if e.response is not None else None
            raise DownloadIntegrityError(
                f"Failed to download: {e}", url=url, path=dest, status_code=status_code
            ) from e
        except OSError as e:
            _remove_partial(dest)
            raise DownloadIntegrityError(
                f"Failed to save file: {e}", url=url, path=dest
            ) from e

        if not os.path.isfile(dest) or os.path.getsize(dest) == 0:
            _remove_partial(dest)
            raise DownloadIntegrityError(
                "Download failed or file is empty", url=url, path=dest
            )

        return os.path.getsize(dest)

    def download(
        self,
        descriptor: ArtifactDescriptor,
        destination_dir: Optional[str] = None
    ) -> DownloadedArtifact:
        """
        Probe, fetch and verify an artifact.

        Args:
            descriptor: Artifact named by the job history
            destination_dir: Directory to write into (default: config.output_dir)

        Returns:
            DownloadedArtifact with the local path and size on disk

        Raises:
            ArtifactUnavailableError: If the probe shows no content
            DownloadIntegrityError: If the written file is missing or empty
        """
        if not descriptor.filename:
            raise ArtifactUnavailableError("Artifact descriptor has no filename")

        destination_dir = destination_dir or self.config.output_dir
        url = build_view_url(self.config.base_url, descriptor)

        declared_size = self.probe(url)

        # Only the final path component is used; a name like "../x.png"
        # must not escape the output directory.
        local_name = os.path.basename(descriptor.filename)
        if not local_name:
            raise ArtifactUnavailableError(
                f"Artifact filename has no file component: {descriptor.filename!r}", url=url
            )
        dest = os.path.join(destination_dir, local_name)
        logger.info(f"[Download] Artifact size is {declared_size} bytes. Downloading to: {dest}")

        try:
            os.makedirs(destination_dir, exist_ok=True)
        except OSError as e:
            raise DownloadIntegrityError(
                f"Failed to create output directory {destination_dir}: {e}",
                url=url,
                path=dest,
            ) from e

        size = self.fetch(url, dest)

        if size != declared_size:
            logger.warning(
                f"[Download] Size mismatch for {dest}: declared {declared_size}, "
                f"wrote {size} bytes"
            )

        logger.info(f"[Download] Download complete: {dest} ({size} bytes)")
        return DownloadedArtifact(path=dest, size=size, declared_size=declared_size, url=url)
