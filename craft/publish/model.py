from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """A release on a target.

    Attributes:
        id: Provider-specific identifier.
        upload_endpoint: Where asset bytes are sent (URL or directory).
        created: True when this publish run created the release.
    """

    id: str
    tag: str
    upload_endpoint: str = ""
    is_draft: bool = True
    created: bool = False


@dataclass(frozen=True, slots=True)
class Artifact:
    """A build artifact offered by an artifact source.

    Attributes:
        locator: Source-specific location (a file path for local sources).
        content_hash: Hex sha256 of the bytes, when the source knows it.
    """

    name: str
    locator: str
    mime_type: str = DEFAULT_CONTENT_TYPE
    content_hash: str | None = None
    size: int | None = None


@dataclass(frozen=True, slots=True)
class RemoteAsset:
    """An asset attached to a release, as reported by the target."""

    id: str
    name: str
    size: int
    digest: str | None = None
