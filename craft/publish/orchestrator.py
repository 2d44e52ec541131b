"""Publishing a version to every configured target.

Per target the sequence is: artifacts, get-or-create release, delete the
release's existing assets, upload (in parallel) and verify, finalize. A
failure after the release exists rolls back what this run did. Targets are
independent: one failing does not stop the others.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from craft.changelog.markdown import Changeset
from craft.core.config import DEFAULT_MAX_CONCURRENCY, GithubConfig, TargetConfig
from craft.core.context import ExecutionContext
from craft.core.errors import ConfigurationError, CraftError
from craft.core.result import Err, Ok, Result
from craft.output.console import Style
from craft.publish.artifacts import ArtifactSource
from craft.publish.integrity import verify_upload
from craft.publish.model import Artifact, ReleaseRecord, RemoteAsset
from craft.publish.targets import (
    TARGETS,
    TargetEnv,
    TargetFactory,
    TargetProvider,
    get_target_factory,
)
from craft.workspaces.discovery import discover
from craft.workspaces.graph import artifact_pattern, filter_packages, topological_sort

__all__ = [
    "PublishReport",
    "TargetOutcome",
    "expand_targets",
    "publish_release",
    "publish_targets",
    "resolve_providers",
]


@dataclass(frozen=True, slots=True)
class TargetOutcome:
    target: str
    release: ReleaseRecord | None = None
    uploaded: tuple[str, ...] = ()
    error: CraftError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class PublishReport:
    version: str
    revision: str
    outcomes: tuple[TargetOutcome, ...]

    @property
    def failed(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def first_error(self) -> CraftError | None:
        for outcome in self.outcomes:
            if outcome.error is not None:
                return outcome.error
        return None


@dataclass(frozen=True, slots=True)
class _Upload:
    artifact: Artifact
    asset: RemoteAsset | None = None
    error: CraftError | None = None


# -----------------------------------------------------------------------------
# Target set
# -----------------------------------------------------------------------------


def expand_targets(
    ctx: ExecutionContext, targets: Sequence[TargetConfig], root: Path
) -> Result[list[TargetConfig], CraftError]:
    """Replace `workspaces = true` targets by one target per public package.

    Packages come in publish order (dependencies first). Each expanded
    target tags `<package>@<tag_prefix><version>` and, unless the target
    sets `include_names`, only takes the package's own tarball.
    """
    out: list[TargetConfig] = []
    for target in targets:
        if not target.option_bool("workspaces"):
            out.append(target)
            continue

        discovery = discover(root)
        if not discovery.packages:
            ctx.console.warning(
                f"{target.display_id}: workspaces enabled but no workspace packages found"
            )
            out.append(target)
            continue

        try:
            packages = filter_packages(
                discovery.packages,
                target.option_str("include_workspaces") or None,
                target.option_str("exclude_workspaces") or None,
            )
        except ValueError as e:
            return Err(
                ConfigurationError(
                    message=f"Invalid workspace pattern for target {target.display_id}: {e}"
                )
            )

        private = {p.name for p in discovery.packages if p.is_private}
        for package in packages:
            hidden = sorted(package.workspace_dependencies & private)
            if hidden and not package.is_private:
                return Err(
                    ConfigurationError(
                        message=(
                            f'Public package "{package.name}" depends on private workspace'
                            f" package(s): {', '.join(hidden)}"
                        ),
                        hint="publish those packages too, or mark the dependent private",
                    )
                )

        ordered = topological_sort([p for p in packages if not p.is_private])
        if isinstance(ordered, Err):
            return ordered

        prefix = target.option_str("tag_prefix")
        for package in ordered.value:
            options = dict(target.options)
            options["workspaces"] = False
            options["tag_prefix"] = f"{package.name}@{prefix}"
            if not target.option_str("include_names"):
                options["include_names"] = artifact_pattern(package.name)
            out.append(
                TargetConfig(name=target.name, options=options, id=f"{target.name}[{package.name}]")
            )
        ctx.console.print(
            f"{target.display_id}: expanded to {len(ordered.value)} workspace package(s)", Style.DIM
        )
    return Ok(out)


def resolve_providers(
    targets: Sequence[TargetConfig],
    env: TargetEnv,
    registry: Mapping[str, TargetFactory] = TARGETS,
) -> Result[list[TargetProvider], ConfigurationError]:
    providers: list[TargetProvider] = []
    for target in targets:
        factory = get_target_factory(target.name, registry)
        if isinstance(factory, Err):
            return factory
        provider = factory.value(target, env)
        if isinstance(provider, Err):
            return provider
        providers.append(provider.value)
    return Ok(providers)


# -----------------------------------------------------------------------------
# Publishing
# -----------------------------------------------------------------------------


def publish_release(
    ctx: ExecutionContext,
    version: str,
    revision: str,
    targets: Sequence[TargetConfig],
    *,
    root: Path,
    artifact_source: ArtifactSource,
    github: GithubConfig | None = None,
    registry: Mapping[str, TargetFactory] = TARGETS,
    changeset: Changeset | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> Result[PublishReport, CraftError]:
    """Publish `version` (built from `revision`) to `targets`.

    Expansion and provider lookup happen before any remote call, so a bad
    target set fails without side effects. When a target fails the others
    still run and the first failure is returned.
    """
    expanded = expand_targets(ctx, targets, root)
    if isinstance(expanded, Err):
        return expanded

    env = TargetEnv(root=root, github=github or GithubConfig(), artifact_source=artifact_source)
    providers = resolve_providers(expanded.value, env, registry)
    if isinstance(providers, Err):
        return providers

    report = publish_targets(
        ctx,
        version,
        revision,
        providers.value,
        artifact_source=artifact_source,
        changeset=changeset,
        max_concurrency=max_concurrency,
    )

    for outcome in report.outcomes:
        if outcome.error is None:
            ctx.console.success(f"{outcome.target}: published {version}")
        else:
            ctx.console.error(f"{outcome.target}: {outcome.error.message}")

    error = report.first_error
    if error is not None:
        return Err(error)
    return Ok(report)


def publish_targets(
    ctx: ExecutionContext,
    version: str,
    revision: str,
    providers: Sequence[TargetProvider],
    *,
    artifact_source: ArtifactSource,
    changeset: Changeset | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> PublishReport:
    outcomes: list[TargetOutcome] = []
    for provider in providers:
        ctx.console.header(f"Publishing to {provider.config.display_id}")
        outcomes.append(
            _publish_one(
                ctx, provider, version, revision, artifact_source, changeset, max_concurrency
            )
        )
    return PublishReport(version=version, revision=revision, outcomes=tuple(outcomes))


def _publish_one(
    ctx: ExecutionContext,
    provider: TargetProvider,
    version: str,
    revision: str,
    artifact_source: ArtifactSource,
    changeset: Changeset | None,
    max_concurrency: int,
) -> TargetOutcome:
    target = provider.config.display_id

    artifacts = provider.get_artifacts_for_revision(revision)
    if isinstance(artifacts, Err):
        return TargetOutcome(target=target, error=artifacts.error)

    local: list[tuple[Artifact, Path]] = []
    for artifact in artifacts.value:
        path = artifact_source.download_artifact(artifact)
        if isinstance(path, Err):
            return TargetOutcome(target=target, error=path.error)
        local.append((artifact, path.value))
    if not local:
        ctx.console.print(f"{target}: no artifacts for {revision}", Style.DIM)

    release = provider.get_or_create_release(ctx, version, revision, changeset)
    if isinstance(release, Err):
        return TargetOutcome(target=target, error=release.error)
    record = release.value

    existing = provider.list_assets(record)
    if isinstance(existing, Err):
        _rollback(ctx, provider, record, [])
        return TargetOutcome(target=target, release=record, error=existing.error)
    for asset in existing.value:
        deleted = provider.delete_asset(ctx, record, asset)
        if isinstance(deleted, Err):
            _rollback(ctx, provider, record, [])
            return TargetOutcome(target=target, release=record, error=deleted.error)

    uploads = _upload_all(ctx, provider, record, local, max_concurrency)
    uploaded = [u.asset for u in uploads if u.asset is not None]
    failure = next((u.error for u in uploads if u.error is not None), None)
    if failure is not None:
        _rollback(ctx, provider, record, uploaded)
        return TargetOutcome(target=target, release=record, error=failure)

    finalized = provider.finalize_release(ctx, record)
    if isinstance(finalized, Err):
        _rollback(ctx, provider, record, uploaded)
        return TargetOutcome(target=target, release=record, error=finalized.error)

    return TargetOutcome(target=target, release=record, uploaded=tuple(a.name for a in uploaded))


def _upload_all(
    ctx: ExecutionContext,
    provider: TargetProvider,
    release: ReleaseRecord,
    local: list[tuple[Artifact, Path]],
    max_concurrency: int,
) -> list[_Upload]:
    """Upload and verify every artifact; results in artifact order."""
    if not local:
        return []

    def upload(artifact: Artifact, path: Path) -> _Upload:
        sent = provider.upload_asset(ctx, release, artifact, path)
        if isinstance(sent, Err):
            return _Upload(artifact=artifact, error=sent.error)
        verified = verify_upload(artifact, path, sent.value)
        if isinstance(verified, Err):
            return _Upload(artifact=artifact, asset=sent.value, error=verified.error)
        return _Upload(artifact=artifact, asset=sent.value)

    workers = max(1, min(max_concurrency, len(local)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(upload, artifact, path) for artifact, path in local]
        return [f.result() for f in futures]


def _rollback(
    ctx: ExecutionContext,
    provider: TargetProvider,
    release: ReleaseRecord,
    uploaded: list[RemoteAsset],
) -> None:
    """Undo this run's changes; failures here are only warnings."""
    target = provider.config.display_id
    if release.created:
        ctx.console.warning(f"{target}: deleting release {release.tag} created by this run")
        deleted = provider.delete_release(ctx, release)
        if isinstance(deleted, Err):
            ctx.console.warning(f"{target}: rollback failed: {deleted.error.message}")
        return

    for asset in uploaded:
        ctx.console.warning(f"{target}: removing {asset.name} uploaded by this run")
        removed = provider.delete_asset(ctx, release, asset)
        if isinstance(removed, Err):
            ctx.console.warning(f"{target}: rollback failed: {removed.error.message}")
