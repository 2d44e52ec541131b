"""Post-upload verification of release assets."""

from __future__ import annotations

import hashlib
from pathlib import Path

from craft.core.errors import AssetIntegrityError
from craft.core.result import Err, Ok, Result
from craft.publish.model import Artifact, RemoteAsset

__all__ = ["bytes_sha256", "file_sha256", "normalize_digest", "verify_upload"]

_CHUNK_SIZE = 1024 * 1024


def file_sha256(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def bytes_sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def normalize_digest(digest: str | None) -> str | None:
    """Hex digest without the `sha256:` prefix some APIs add."""
    if not digest:
        return None
    return digest.strip().lower().removeprefix("sha256:")


def verify_upload(
    artifact: Artifact, local: Path, asset: RemoteAsset
) -> Result[None, AssetIntegrityError]:
    """Check the remote asset against the local file: size first, then sha256.

    The local hash is also compared with the digest the artifact source
    reported, so a file changed after it was fetched is caught too.
    """
    local_size = local.stat().st_size
    if asset.size != local_size:
        return Err(
            AssetIntegrityError(
                asset=artifact.name,
                check="size",
                expected=str(local_size),
                actual=str(asset.size),
                hint="the upload was truncated or replaced; publish again",
            )
        )

    local_digest = file_sha256(local)
    actual_digest = normalize_digest(asset.digest)
    if actual_digest != local_digest:
        return Err(
            AssetIntegrityError(
                asset=artifact.name,
                check="digest",
                expected=f"sha256:{local_digest}",
                actual=f"sha256:{actual_digest}" if actual_digest else "none",
                hint="the uploaded bytes differ from the local artifact; publish again",
            )
        )

    source_digest = normalize_digest(artifact.content_hash)
    if source_digest is not None and source_digest != local_digest:
        return Err(
            AssetIntegrityError(
                asset=artifact.name,
                check="source digest",
                expected=f"sha256:{source_digest}",
                actual=f"sha256:{local_digest}",
                hint="the local artifact differs from the one the source reported; fetch it again",
            )
        )
    return Ok(None)
