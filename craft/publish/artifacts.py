"""Where release artifacts come from.

craft never builds anything: a CI job drops artifacts somewhere and an
artifact source hands them to the targets.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Protocol

from craft.core.config import ArtifactsConfig
from craft.core.errors import ConfigurationError, CraftError, RemoteOperationError
from craft.core.result import Err, Ok, Result
from craft.publish.integrity import file_sha256
from craft.publish.model import DEFAULT_CONTENT_TYPE, Artifact

__all__ = [
    "ArtifactSource",
    "LocalArtifactSource",
    "NoneArtifactSource",
    "make_artifact_source",
]

REVISION_PLACEHOLDER = "{revision}"


class ArtifactSource(Protocol):
    def list_artifacts_for_revision(self, revision: str) -> Result[list[Artifact], CraftError]: ...

    def download_artifact(self, artifact: Artifact) -> Result[Path, CraftError]: ...


class LocalArtifactSource:
    """Artifacts are the files of a local directory.

    The configured path may contain `{revision}`, replaced by the commit
    being published (e.g. `artifacts/{revision}`). Subdirectories are not
    descended into.
    """

    def __init__(self, root: Path, path: str = "dist") -> None:
        self.root = root
        self.path = path

    def directory(self, revision: str) -> Path:
        return self.root / self.path.replace(REVISION_PLACEHOLDER, revision)

    def list_artifacts_for_revision(self, revision: str) -> Result[list[Artifact], CraftError]:
        directory = self.directory(revision)
        if not directory.is_dir():
            return Ok([])

        artifacts: list[Artifact] = []
        try:
            for path in sorted(directory.iterdir()):
                if not path.is_file():
                    continue
                mime_type, _ = mimetypes.guess_type(path.name)
                artifacts.append(
                    Artifact(
                        name=path.name,
                        locator=str(path),
                        mime_type=mime_type or DEFAULT_CONTENT_TYPE,
                        content_hash=file_sha256(path),
                        size=path.stat().st_size,
                    )
                )
        except OSError as e:
            return Err(
                RemoteOperationError(
                    operation="list_artifacts",
                    message=f"Could not read artifacts in {directory}: {e}",
                )
            )
        return Ok(artifacts)

    def download_artifact(self, artifact: Artifact) -> Result[Path, CraftError]:
        path = Path(artifact.locator)
        if not path.is_file():
            return Err(
                RemoteOperationError(
                    operation="download_artifact",
                    message=f"Artifact disappeared: {artifact.name}",
                    hint=str(path),
                )
            )
        return Ok(path)


class NoneArtifactSource:
    """No artifacts: targets publish releases without assets."""

    def list_artifacts_for_revision(self, revision: str) -> Result[list[Artifact], CraftError]:
        return Ok([])

    def download_artifact(self, artifact: Artifact) -> Result[Path, CraftError]:
        return Err(
            ConfigurationError(
                message=f"Cannot fetch {artifact.name}: no artifact provider configured",
                hint='set [artifacts] provider = "local"',
            )
        )


def make_artifact_source(
    config: ArtifactsConfig, root: Path
) -> Result[ArtifactSource, ConfigurationError]:
    match config.provider:
        case "local":
            return Ok(LocalArtifactSource(root, config.path))
        case "none":
            return Ok(NoneArtifactSource())
    return Err(
        ConfigurationError(
            message=f"Unknown artifact provider: {config.provider}",
            hint='use "local" or "none"',
        )
    )
