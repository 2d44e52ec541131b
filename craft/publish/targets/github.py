"""GitHub releases, driven through `gh api`.

Releases are created as drafts, filled with assets and then published, so a
half-uploaded release is never visible. A draft with the same tag left over
from an earlier attempt is reused.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from urllib.parse import quote

from craft.changelog.markdown import Changeset
from craft.core.config import TargetConfig
from craft.core.context import ExecutionContext
from craft.core.errors import ConfigurationError, CraftError, RemoteOperationError
from craft.core.result import Err, Ok, Result
from craft.core.structured import StrDict, as_obj_list, as_str_dict, get_str
from craft.github.gh import detect_repo_slug, gh_api_bytes, gh_api_json, gh_upload_file
from craft.publish.integrity import bytes_sha256, file_sha256
from craft.publish.model import Artifact, ReleaseRecord, RemoteAsset
from craft.publish.targets.base import BaseTarget, TargetEnv, TargetProvider
from craft.versioning.semver import is_preview_release

__all__ = ["GithubTarget", "github_target"]

_PAGE_SIZE = 100
_DRY_RUN_RELEASE_ID = "0"


class GithubTarget(BaseTarget):
    def __init__(self, config: TargetConfig, env: TargetEnv, repo: str) -> None:
        super().__init__(config, env)
        self.repo = repo

    # -------------------------------------------------------------------------
    # Releases
    # -------------------------------------------------------------------------

    def get_or_create_release(
        self,
        ctx: ExecutionContext,
        version: str,
        revision: str,
        changeset: Changeset | None,
    ) -> Result[ReleaseRecord, CraftError]:
        tag = self.tag_for(version)
        existing = self._find_release(tag)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            ctx.console.info(f"{self.repo}: reusing release {tag}")
            return Ok(existing.value)

        if ctx.skip_mutation(f"create draft release {tag} on {self.repo}"):
            return Ok(ReleaseRecord(id=_DRY_RUN_RELEASE_ID, tag=tag, created=True))

        if self.config.option_bool("annotated_tag"):
            tagged = self._create_annotated_tag(tag, revision)
            if isinstance(tagged, Err):
                return tagged

        preview = self.config.option_bool("preview_releases", True) and is_preview_release(version)
        body: dict[str, object] = {
            "tag_name": tag,
            "name": tag,
            "target_commitish": revision,
            "draft": True,
            "prerelease": preview,
        }
        if changeset is not None and changeset.body.strip():
            body["body"] = changeset.body.strip()

        created = gh_api_json(
            cwd=self.env.root,
            endpoint=f"repos/{self.repo}/releases",
            method="POST",
            body=body,
            operation="create_release",
        )
        if isinstance(created, Err):
            return created
        record = _release_record(as_str_dict(created.value), created=True)
        if record is None:
            return Err(
                RemoteOperationError(
                    operation="create_release", message=f"unexpected release payload for {tag}"
                )
            )
        ctx.console.info(f"{self.repo}: created draft release {tag}")
        return Ok(record)

    def finalize_release(
        self, ctx: ExecutionContext, release: ReleaseRecord
    ) -> Result[None, CraftError]:
        if self.config.option_bool("draft"):
            ctx.console.info(f"{self.repo}: leaving {release.tag} as a draft")
            return Ok(None)
        if not release.is_draft:
            return Ok(None)
        if ctx.skip_mutation(f"publish draft release {release.tag}"):
            return Ok(None)

        updated = gh_api_json(
            cwd=self.env.root,
            endpoint=f"repos/{self.repo}/releases/{release.id}",
            method="PATCH",
            body={"draft": False},
            operation="publish_release",
        )
        if isinstance(updated, Err):
            return updated
        return Ok(None)

    def delete_release(
        self, ctx: ExecutionContext, release: ReleaseRecord
    ) -> Result[None, CraftError]:
        if ctx.skip_mutation(f"delete release {release.tag}"):
            return Ok(None)
        deleted = gh_api_json(
            cwd=self.env.root,
            endpoint=f"repos/{self.repo}/releases/{release.id}",
            method="DELETE",
            operation="delete_release",
        )
        if isinstance(deleted, Err):
            return deleted
        return Ok(None)

    def _find_release(self, tag: str) -> Result[ReleaseRecord | None, CraftError]:
        """Release with `tag`, drafts included (the by-tag endpoint skips drafts)."""
        page = 1
        while True:
            listed = self._list_page(f"repos/{self.repo}/releases", page, "list_releases")
            if isinstance(listed, Err):
                return listed
            for data in listed.value:
                if get_str(data, "tag_name") == tag:
                    return Ok(_release_record(data, created=False))
            if len(listed.value) < _PAGE_SIZE:
                return Ok(None)
            page += 1

    def _list_page(
        self, endpoint: str, page: int, operation: str
    ) -> Result[list[StrDict], CraftError]:
        listed = gh_api_json(
            cwd=self.env.root,
            endpoint=f"{endpoint}?per_page={_PAGE_SIZE}&page={page}",
            operation=operation,
        )
        if isinstance(listed, Err):
            return listed
        items = (as_str_dict(item) for item in as_obj_list(listed.value) or [])
        return Ok([item for item in items if item is not None])

    def _create_annotated_tag(self, tag: str, revision: str) -> Result[None, CraftError]:
        obj = gh_api_json(
            cwd=self.env.root,
            endpoint=f"repos/{self.repo}/git/tags",
            method="POST",
            body={"tag": tag, "message": tag, "object": revision, "type": "commit"},
            operation="create_tag",
        )
        if isinstance(obj, Err):
            return obj
        data = as_str_dict(obj.value)
        sha = get_str(data, "sha") if data is not None else None
        if sha is None:
            return Err(
                RemoteOperationError(operation="create_tag", message=f"no sha for tag {tag}")
            )

        ref = gh_api_json(
            cwd=self.env.root,
            endpoint=f"repos/{self.repo}/git/refs",
            method="POST",
            body={"ref": f"refs/tags/{tag}", "sha": sha},
            operation="create_tag",
        )
        if isinstance(ref, Err):
            return ref
        return Ok(None)

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    def list_assets(self, release: ReleaseRecord) -> Result[list[RemoteAsset], CraftError]:
        if release.id == _DRY_RUN_RELEASE_ID:
            return Ok([])
        assets: list[RemoteAsset] = []
        page = 1
        while True:
            listed = self._list_page(
                f"repos/{self.repo}/releases/{release.id}/assets", page, "list_assets"
            )
            if isinstance(listed, Err):
                return listed
            for data in listed.value:
                asset = _remote_asset(data)
                if asset is not None:
                    assets.append(asset)
            if len(listed.value) < _PAGE_SIZE:
                return Ok(assets)
            page += 1

    def upload_asset(
        self,
        ctx: ExecutionContext,
        release: ReleaseRecord,
        artifact: Artifact,
        path: Path,
    ) -> Result[RemoteAsset, CraftError]:
        if ctx.skip_mutation(f"upload {artifact.name} to {release.tag}"):
            return Ok(
                RemoteAsset(
                    id=_DRY_RUN_RELEASE_ID,
                    name=artifact.name,
                    size=artifact.size if artifact.size is not None else path.stat().st_size,
                    digest=artifact.content_hash or file_sha256(path),
                )
            )

        uploaded = gh_upload_file(
            cwd=self.env.root,
            url=f"{release.upload_endpoint}?name={quote(artifact.name)}",
            path=path,
            content_type=artifact.mime_type,
        )
        if isinstance(uploaded, Err):
            return uploaded
        asset = _remote_asset(as_str_dict(uploaded.value))
        if asset is None:
            return Err(
                RemoteOperationError(
                    operation="upload_asset",
                    message=f"unexpected upload payload for {artifact.name}",
                )
            )

        if asset.digest is None:
            content = gh_api_bytes(
                cwd=self.env.root, endpoint=f"repos/{self.repo}/releases/assets/{asset.id}"
            )
            if isinstance(content, Err):
                return content
            asset = replace(asset, digest=bytes_sha256(content.value))

        ctx.console.success(f"{self.repo}: uploaded {artifact.name} to {release.tag}")
        return Ok(asset)

    def delete_asset(
        self, ctx: ExecutionContext, release: ReleaseRecord, asset: RemoteAsset
    ) -> Result[None, CraftError]:
        if ctx.skip_mutation(f"delete asset {asset.name} from {release.tag}"):
            return Ok(None)
        deleted = gh_api_json(
            cwd=self.env.root,
            endpoint=f"repos/{self.repo}/releases/assets/{asset.id}",
            method="DELETE",
            operation="delete_asset",
        )
        if isinstance(deleted, Err):
            return deleted
        return Ok(None)


def _release_record(data: StrDict | None, *, created: bool) -> ReleaseRecord | None:
    if data is None:
        return None
    release_id = data.get("id")
    tag = get_str(data, "tag_name")
    if not isinstance(release_id, int) or tag is None:
        return None
    upload_url = get_str(data, "upload_url") or ""
    return ReleaseRecord(
        id=str(release_id),
        tag=tag,
        # "https://uploads.github.com/.../assets{?name,label}"
        upload_endpoint=upload_url.split("{", 1)[0],
        is_draft=data.get("draft") is True,
        created=created,
    )


def _remote_asset(data: StrDict | None) -> RemoteAsset | None:
    if data is None:
        return None
    asset_id = data.get("id")
    name = get_str(data, "name")
    size = data.get("size")
    if not isinstance(asset_id, int) or name is None or not isinstance(size, int):
        return None
    return RemoteAsset(id=str(asset_id), name=name, size=size, digest=get_str(data, "digest"))


def github_target(
    config: TargetConfig, env: TargetEnv
) -> Result[TargetProvider, ConfigurationError]:
    repo = env.github.slug
    if repo is None:
        detected = detect_repo_slug(cwd=env.root)
        if isinstance(detected, Err):
            return Err(
                ConfigurationError(
                    message="GitHub repository is not configured",
                    hint="set owner and repo under [github] in .craft.toml",
                )
            )
        repo = detected.value
    return Ok(GithubTarget(config, env, repo))
