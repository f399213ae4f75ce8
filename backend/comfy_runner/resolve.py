"""
Result Resolver - Pick the artifact out of a job history document.

A history document maps job ids to an ``outputs`` mapping of node id ->
node output. Image-producing nodes carry an ``images`` list:

    {
        "abc123": {
            "outputs": {
                "9": {"images": [{"filename": "out.png", "subfolder": "", "type": "output"}]}
            }
        }
    }

The first output (in document order, across all job entries) with a
non-empty ``images`` list wins, and its first image is the artifact.
Iteration order follows the parsed JSON, which is the order the service
serialized it in; services are not required to keep that stable.
"""

from typing import Any, Optional

from .base import ArtifactDescriptor


def resolve_artifact(body: Any) -> Optional[ArtifactDescriptor]:
    """
    Extract the first image artifact from a parsed history document.

    Args:
        body: Parsed JSON from the history endpoint

    Returns:
        ArtifactDescriptor, or None if no output names an image file
    """
    if not isinstance(body, dict):
        return None

    for entry in body.values():
        if not isinstance(entry, dict):
            continue
        outputs = entry.get("outputs")
        if not isinstance(outputs, dict):
            continue

        for output in outputs.values():
            image = _first_image(output)
            if image is None:
                continue
            return _to_descriptor(image)

    return None


def _first_image(output: Any) -> Optional[Any]:
    if not isinstance(output, dict):
        return None
    images = output.get("images")
    if not isinstance(images, list) or not images:
        return None
    return images[0]


def _to_descriptor(image: Any) -> Optional[ArtifactDescriptor]:
    """Build a descriptor from an image entry; None if it has no filename."""
    if not isinstance(image, dict):
        return None

    filename = _as_str(image.get("filename"))
    if not filename:
        return None

    return ArtifactDescriptor(
        filename=filename,
        subfolder=_as_str(image.get("subfolder")),
        kind=_as_str(image.get("type")),
    )


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
