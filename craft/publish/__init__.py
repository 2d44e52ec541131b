"""Publishing releases to distribution targets."""

from craft.publish.artifacts import (
    ArtifactSource,
    LocalArtifactSource,
    NoneArtifactSource,
    make_artifact_source,
)
from craft.publish.integrity import verify_upload
from craft.publish.model import Artifact, ReleaseRecord, RemoteAsset
from craft.publish.orchestrator import (
    PublishReport,
    TargetOutcome,
    expand_targets,
    publish_release,
)
from craft.publish.targets import TARGETS, TargetProvider

__all__ = [
    "TARGETS",
    "Artifact",
    "ArtifactSource",
    "LocalArtifactSource",
    "NoneArtifactSource",
    "PublishReport",
    "ReleaseRecord",
    "RemoteAsset",
    "TargetOutcome",
    "TargetProvider",
    "expand_targets",
    "make_artifact_source",
    "publish_release",
    "verify_upload",
]
