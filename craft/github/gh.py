"""Source-hosting API access through the GitHub CLI.

Reads are retried on transient failures; writes never are, since most of
them (create release, upload asset) are not idempotent.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from time import sleep

from craft.core.errors import RemoteOperationError
from craft.core.result import Err, Ok, Result
from craft.core.structured import as_str_dict, get_str
from craft.platform.process import ProcessError
from craft.platform.process import run as run_process
from craft.platform.process import run_bytes

GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _remote_error(operation: str, message: str, error: ProcessError) -> RemoteOperationError:
    return RemoteOperationError(
        operation=operation,
        message=message,
        hint=error.stderr.strip() or None,
    )


def run_gh_read(
    *,
    cwd: Path,
    cmd: list[str],
    operation: str,
    message: str,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, RemoteOperationError]:
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=cwd, timeout=timeout)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(_remote_error(operation, message, error))

    return Err(RemoteOperationError(operation=operation, message=message))


def run_gh_write(
    *,
    cwd: Path,
    cmd: list[str],
    operation: str,
    message: str,
    stdin: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
) -> Result[str, RemoteOperationError]:
    result = run_process(cmd, cwd=cwd, timeout=timeout, stdin=stdin)
    if isinstance(result, Err):
        return Err(_remote_error(operation, message, result.error))
    return result


def ensure_gh_available() -> Result[None, RemoteOperationError]:
    if shutil.which("gh") is None:
        return Err(
            RemoteOperationError(
                operation="gh",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def _decode_json(text: str, operation: str, endpoint: str) -> Result[object, RemoteOperationError]:
    if not text.strip():
        return Ok(None)
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            RemoteOperationError(
                operation=operation,
                message=f"gh api returned invalid JSON: {e}",
                hint=endpoint,
            )
        )
    return Ok(obj)


def gh_api_json(
    *,
    cwd: Path,
    endpoint: str,
    method: str = "GET",
    body: dict[str, object] | None = None,
    operation: str = "gh_api",
) -> Result[object, RemoteOperationError]:
    """Call `gh api` and decode the JSON response.

    GET requests are retried on transient errors. Other methods send `body`
    as JSON on stdin and are attempted once. An empty response (e.g. 204 on
    DELETE) decodes to None.
    """
    if method == "GET":
        result = run_gh_read(
            cwd=cwd,
            cmd=["gh", "api", endpoint],
            operation=operation,
            message=f"gh api failed: {endpoint}",
        )
    else:
        cmd = ["gh", "api", "-X", method, endpoint]
        stdin: str | None = None
        if body is not None:
            cmd += ["--input", "-"]
            stdin = json.dumps(body)
        result = run_gh_write(
            cwd=cwd,
            cmd=cmd,
            operation=operation,
            message=f"gh api {method} failed: {endpoint}",
            stdin=stdin,
        )
    if isinstance(result, Err):
        return result
    return _decode_json(result.value, operation, endpoint)


def gh_upload_file(
    *,
    cwd: Path,
    url: str,
    path: Path,
    content_type: str,
) -> Result[object, RemoteOperationError]:
    """POST a file's bytes to an absolute upload URL."""
    result = run_gh_write(
        cwd=cwd,
        cmd=[
            "gh",
            "api",
            "-X",
            "POST",
            url,
            "--input",
            str(path),
            "-H",
            f"Content-Type: {content_type}",
        ],
        operation="upload_asset",
        message=f"upload failed: {path.name}",
        timeout=GH_UPLOAD_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return result
    return _decode_json(result.value, "upload_asset", url)


def gh_api_bytes(*, cwd: Path, endpoint: str) -> Result[bytes, RemoteOperationError]:
    """Download a binary payload (release asset content)."""
    result = run_bytes(
        ["gh", "api", "-H", "Accept: application/octet-stream", endpoint],
        cwd=cwd,
        timeout=GH_UPLOAD_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(_remote_error("download_asset", f"download failed: {endpoint}", result.error))
    return result


def get_repo_file_text(
    *,
    cwd: Path,
    repo: str,
    path: str,
    ref: str,
) -> Result[str | None, RemoteOperationError]:
    """Read a file at `ref` through the Contents API; None when it is absent."""
    endpoint = f"repos/{repo}/contents/{path}?ref={ref}"
    result = run_process(["gh", "api", endpoint], cwd=cwd, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        if "http 404" in result.error.stderr.lower():
            return Ok(None)
        return Err(_remote_error("read_file", f"could not read {path}@{ref}", result.error))

    obj = _decode_json(result.value, "read_file", endpoint)
    if isinstance(obj, Err):
        return obj
    data = as_str_dict(obj.value)
    enc = get_str(data, "encoding") if data is not None else None
    content = get_str(data, "content") if data is not None else None
    if enc != "base64" or content is None:
        return Err(
            RemoteOperationError(
                operation="read_file",
                message=f"unexpected contents payload for {repo}/{path}",
                hint=endpoint,
            )
        )

    try:
        return Ok(base64.b64decode(content, validate=False).decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        return Err(
            RemoteOperationError(
                operation="read_file",
                message=f"failed to decode contents: {e}",
                hint=endpoint,
            )
        )


@dataclass(frozen=True, slots=True)
class CommitStatus:
    state: str
    total: int

    @property
    def is_success(self) -> bool:
        return self.state == "success"


def get_commit_status(
    *, cwd: Path, repo: str, rev: str
) -> Result[CommitStatus, RemoteOperationError]:
    """Combined status of a revision (status checks)."""
    obj = gh_api_json(cwd=cwd, endpoint=f"repos/{repo}/commits/{rev}/status", operation="status")
    if isinstance(obj, Err):
        return obj
    data = as_str_dict(obj.value)
    if data is None:
        return Err(RemoteOperationError(operation="status", message="unexpected status payload"))
    total = data.get("total_count")
    return Ok(
        CommitStatus(
            state=get_str(data, "state") or "unknown",
            total=total if isinstance(total, int) else 0,
        )
    )


def get_default_branch(*, cwd: Path, repo: str) -> Result[str, RemoteOperationError]:
    obj = gh_api_json(cwd=cwd, endpoint=f"repos/{repo}", operation="default_branch")
    if isinstance(obj, Err):
        return obj
    data = as_str_dict(obj.value)
    branch = get_str(data, "default_branch") if data is not None else None
    if branch is None:
        return Err(
            RemoteOperationError(
                operation="default_branch", message=f"missing default branch: {repo}"
            )
        )
    return Ok(branch)


def detect_repo_slug(*, cwd: Path) -> Result[str, RemoteOperationError]:
    """`owner/name` of the repository checked out at `cwd`."""
    result = run_gh_read(
        cwd=cwd,
        cmd=["gh", "repo", "view", "--json", "nameWithOwner", "-q", ".nameWithOwner"],
        operation="repo_view",
        message="could not determine the GitHub repository",
    )
    if isinstance(result, Err):
        return result
    slug = result.value.strip()
    if "/" not in slug:
        return Err(RemoteOperationError(operation="repo_view", message=f"unexpected repo: {slug}"))
    return Ok(slug)


def merge_branch(
    *, cwd: Path, repo: str, base: str, head: str, message: str
) -> Result[None, RemoteOperationError]:
    """Merge `head` into `base` through the merges API (no-op if already merged)."""
    result = gh_api_json(
        cwd=cwd,
        endpoint=f"repos/{repo}/merges",
        method="POST",
        body={"base": base, "head": head, "commit_message": message},
        operation="merge",
    )
    if isinstance(result, Err):
        return result
    return Ok(None)


def delete_branch(*, cwd: Path, repo: str, branch: str) -> Result[None, RemoteOperationError]:
    result = gh_api_json(
        cwd=cwd,
        endpoint=f"repos/{repo}/git/refs/heads/{branch}",
        method="DELETE",
        operation="delete_branch",
    )
    if isinstance(result, Err):
        return result
    return Ok(None)


def auth_token(*, cwd: Path) -> str | None:
    """API token from GITHUB_TOKEN / GH_TOKEN, else from `gh auth token`."""
    for name in ("GITHUB_TOKEN", "GH_TOKEN"):
        value = os.environ.get(name, "").strip()
        if value:
            return value
    result = run_process(["gh", "auth", "token"], cwd=cwd, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return None
    return result.value.strip() or None
