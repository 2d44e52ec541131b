"""Directory mirror target.

Each release is a directory named after its tag under the mirror root.
While assets are uploaded it lives in a hidden `.<tag>.draft` directory;
finalizing renames it into place, so readers of the mirror never see a
partial release.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from craft.changelog.markdown import Changeset
from craft.core.config import TargetConfig
from craft.core.context import ExecutionContext
from craft.core.errors import ConfigurationError, CraftError, RemoteOperationError
from craft.core.result import Err, Ok, Result
from craft.publish.integrity import file_sha256
from craft.publish.model import Artifact, ReleaseRecord, RemoteAsset
from craft.publish.targets.base import BaseTarget, TargetEnv, TargetProvider

__all__ = ["MirrorTarget", "mirror_target"]


def _draft_name(tag: str) -> str:
    return f".{tag}.draft"


class MirrorTarget(BaseTarget):
    def __init__(self, config: TargetConfig, env: TargetEnv, root: Path) -> None:
        super().__init__(config, env)
        self.root = root

    def get_or_create_release(
        self,
        ctx: ExecutionContext,
        version: str,
        revision: str,
        changeset: Changeset | None,
    ) -> Result[ReleaseRecord, CraftError]:
        tag = self.tag_for(version)
        final = self.root / tag
        draft = self.root / _draft_name(tag)

        if final.is_dir():
            ctx.console.info(f"mirror: reusing release {tag}")
            return Ok(_record(final, tag, is_draft=False, created=False))
        if draft.is_dir():
            ctx.console.info(f"mirror: reusing draft release {tag}")
            return Ok(_record(draft, tag, is_draft=True, created=False))

        if ctx.skip_mutation(f"create draft release {tag} in {self.root}"):
            return Ok(_record(draft, tag, is_draft=True, created=True))
        try:
            draft.mkdir(parents=True)
        except OSError as e:
            return Err(_io_error("create_release", f"Could not create {draft}: {e}"))
        return Ok(_record(draft, tag, is_draft=True, created=True))

    def list_assets(self, release: ReleaseRecord) -> Result[list[RemoteAsset], CraftError]:
        directory = Path(release.upload_endpoint)
        if not directory.is_dir():
            return Ok([])
        try:
            return Ok([_asset(p) for p in sorted(directory.iterdir()) if p.is_file()])
        except OSError as e:
            return Err(_io_error("list_assets", f"Could not list {directory}: {e}"))

    def upload_asset(
        self,
        ctx: ExecutionContext,
        release: ReleaseRecord,
        artifact: Artifact,
        path: Path,
    ) -> Result[RemoteAsset, CraftError]:
        dest = Path(release.upload_endpoint) / artifact.name
        if ctx.skip_mutation(f"copy {artifact.name} to {dest}"):
            return Ok(_asset(path, name=artifact.name))
        try:
            shutil.copyfile(path, dest)
            return Ok(_asset(dest))
        except OSError as e:
            return Err(_io_error("upload_asset", f"Could not copy {artifact.name}: {e}"))

    def delete_asset(
        self, ctx: ExecutionContext, release: ReleaseRecord, asset: RemoteAsset
    ) -> Result[None, CraftError]:
        path = Path(release.upload_endpoint) / asset.name
        if ctx.skip_mutation(f"delete {path}"):
            return Ok(None)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            return Err(_io_error("delete_asset", f"Could not delete {path}: {e}"))
        return Ok(None)

    def finalize_release(
        self, ctx: ExecutionContext, release: ReleaseRecord
    ) -> Result[None, CraftError]:
        if not release.is_draft or self.config.option_bool("draft"):
            return Ok(None)
        final = self.root / release.tag
        if ctx.skip_mutation(f"move {release.upload_endpoint} to {final}"):
            return Ok(None)
        if final.exists():
            return Err(
                RemoteOperationError(
                    operation="publish_release",
                    message=f"Release {release.tag} already exists in {self.root}",
                )
            )
        try:
            Path(release.upload_endpoint).rename(final)
        except OSError as e:
            return Err(_io_error("publish_release", f"Could not publish {release.tag}: {e}"))
        ctx.console.success(f"mirror: published {final}")
        return Ok(None)

    def delete_release(
        self, ctx: ExecutionContext, release: ReleaseRecord
    ) -> Result[None, CraftError]:
        directory = Path(release.upload_endpoint)
        if ctx.skip_mutation(f"delete {directory}") or not directory.exists():
            return Ok(None)
        try:
            shutil.rmtree(directory)
        except OSError as e:
            return Err(_io_error("delete_release", f"Could not delete {directory}: {e}"))
        return Ok(None)


def _record(directory: Path, tag: str, *, is_draft: bool, created: bool) -> ReleaseRecord:
    return ReleaseRecord(
        id=directory.name,
        tag=tag,
        upload_endpoint=str(directory),
        is_draft=is_draft,
        created=created,
    )


def _asset(path: Path, *, name: str | None = None) -> RemoteAsset:
    return RemoteAsset(
        id=name or path.name,
        name=name or path.name,
        size=path.stat().st_size,
        digest=file_sha256(path),
    )


def _io_error(operation: str, message: str) -> RemoteOperationError:
    return RemoteOperationError(operation=operation, message=message)


def mirror_target(
    config: TargetConfig, env: TargetEnv
) -> Result[TargetProvider, ConfigurationError]:
    raw = config.option_str("path")
    if not raw:
        return Err(
            ConfigurationError(
                message=f"Target {config.display_id} is missing 'path'",
                hint='add path = "<directory>" to the mirror target',
            )
        )
    root = Path(raw).expanduser()
    if not root.is_absolute():
        root = env.root / root
    return Ok(MirrorTarget(config, env, root))
