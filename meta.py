"""Read the project descriptor (meta.json) consumed by the font build."""

import json
from dataclasses import dataclass
from pathlib import Path

from utils import MetadataError


@dataclass(frozen=True)
class ProjectMetadata:
    font_version: str
    font_description: str = ""

    def __post_init__(self):
        if not self.font_version:
            raise MetadataError("fontVersion must not be empty")


def load_project_metadata(path: Path) -> ProjectMetadata:
    """Parse meta.json into ProjectMetadata.

    Raises MetadataError if the file is missing, is not valid JSON, or lacks a
    string fontVersion.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise MetadataError(f'Could not read the "{Path(path).name}" file: {e}') from e

    if not isinstance(data, dict):
        raise MetadataError(f"{path}: expected a JSON object")

    version = data.get("fontVersion")
    if not isinstance(version, str):
        raise MetadataError(f"{path}: fontVersion must be a string, got {version!r}")

    description = data.get("fontDescription", "")
    if description is None:
        description = ""
    if not isinstance(description, str):
        raise MetadataError(
            f"{path}: fontDescription must be a string, got {description!r}"
        )

    return ProjectMetadata(font_version=version, font_description=description)
