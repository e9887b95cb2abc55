"""HTML pages for browsing the repository tree.

``/repos/<org>/...`` lists an organization folder. Once the path reaches a
``.git`` component it addresses a repository:

- ``/repos/<repo>.git``: branches and recent commits
- ``/repos/<repo>.git/tree/<ref>/<path>``: folder listing or file content
- ``/repos/<repo>.git/commit/<sha>``: commit with its patch
"""

from datetime import datetime
from html import escape
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import HTMLResponse

from gitflower.api.dependencies import CloneURLResolverDep, RepositoryServiceDep
from gitflower.core.exceptions import (
    InvalidNameError,
    RepositoryNotFoundError,
    RevisionNotFoundError,
    ScanAccessError,
)
from gitflower.core.models.repository import RepositoryRecord
from gitflower.git.backend import Commit, TreeEntry
from gitflower.git.url_resolver import CloneURLResolver
from gitflower.services.repositories import RepositoryService
from gitflower.tree.validation import is_repository, split_path, validate_org_folder
from gitflower.utils.formatting import format_age, format_size

router = APIRouter()

RECENT_COMMITS = 10
# NUL in the first 8000 bytes marks a binary file, as git does
_BINARY_SNIFF_BYTES = 8000

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
<h1>{title}</h1>
{body}
</body>
</html>
"""


def _repo_url(relative_path: str, *parts: str) -> str:
    return "/repos/" + quote("/".join([relative_path, *parts]))


def _render_page(title: str, body: str) -> str:
    return _PAGE.format(title=escape(title), body=body)


def _render_warnings(warnings: list[str]) -> str:
    if not warnings:
        return ""
    items = "\n".join(f"<li>{escape(w)}</li>" for w in warnings)
    return f'<section class="warnings"><h2>Warnings</h2>\n<ul>\n{items}\n</ul>\n</section>'


def _render_table(records: list[RepositoryRecord], resolver: CloneURLResolver) -> str:
    if not records:
        return "<p>No repositories found</p>"

    rows = []
    for record in records:
        status_text = "OK" if record.is_valid else f"ERROR: {record.error}"
        rows.append(
            "<tr>"
            f'<td><a href="{escape(_repo_url(record.relative_path))}">'
            f"{escape(record.relative_path)}</a></td>"
            f"<td>{record.branch_count}</td>"
            f"<td>{record.mr_count}</td>"
            f"<td>{format_size(record.size)}</td>"
            f"<td>{escape(format_age(record.last_update))}</td>"
            f"<td>{escape(status_text)}</td>"
            f"<td><code>{escape(resolver.resolve(record.relative_path))}</code></td>"
            "</tr>"
        )
    header = (
        "<tr><th>Path</th><th>Branches</th><th>MR</th><th>Size</th>"
        "<th>Last update</th><th>Status</th><th>Clone URL</th></tr>"
    )
    return "<table>\n" + header + "\n" + "\n".join(rows) + "\n</table>"


def _render_listing(
    title: str,
    records: list[RepositoryRecord],
    warnings: list[str],
    resolver: CloneURLResolver,
) -> str:
    scanned_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    body = "\n".join(
        [
            f"<p>Scanned at {scanned_at}</p>",
            _render_warnings(warnings),
            _render_table(records, resolver),
        ]
    )
    return _render_page(title, body)


def _render_commits(relative_path: str, commits: list[Commit]) -> str:
    if not commits:
        return "<p>No commits yet</p>"
    rows = "\n".join(
        "<tr>"
        f'<td><a href="{escape(_repo_url(relative_path, "commit", c.sha))}">'
        f"<code>{c.short_sha}</code></a></td>"
        f"<td>{escape(c.subject)}</td>"
        f"<td>{escape(c.author_name)}</td>"
        f"<td>{escape(format_age(c.committed_at))}</td>"
        "</tr>"
        for c in commits
    )
    header = "<tr><th>Commit</th><th>Message</th><th>Author</th><th>Date</th></tr>"
    return "<table>\n" + header + "\n" + rows + "\n</table>"


def _repository_page(
    service: RepositoryService,
    resolver: CloneURLResolver,
    relative_path: str,
) -> str:
    branches = service.branches(relative_path)
    commits = service.recent_commits(relative_path, limit=RECENT_COMMITS)

    branch_items = "\n".join(
        f'<li><a href="{escape(_repo_url(relative_path, "tree", b))}">{escape(b)}</a></li>'
        for b in branches
    )
    sections = [
        f"<p>Clone: <code>{escape(resolver.resolve(relative_path))}</code></p>",
        "<h2>Branches</h2>",
        f"<ul>\n{branch_items}\n</ul>" if branches else "<p>No branches</p>",
        "<h2>Recent commits</h2>",
        _render_commits(relative_path, commits),
    ]
    if commits:
        browse_url = escape(_repo_url(relative_path, "tree", "HEAD"))
        sections.append(f'<p><a href="{browse_url}">Browse files</a></p>')
    return _render_page(relative_path, "\n".join(sections))


def _render_tree(relative_path: str, ref: str, path: str, entries: list[TreeEntry]) -> str:
    rows = []
    for entry in entries:
        label = entry.name + ("/" if entry.kind == "tree" else "")
        if entry.kind == "commit":
            # submodule: nothing to browse here
            cell = escape(label)
        else:
            target = "/".join(part for part in (path, entry.name) if part)
            url = escape(_repo_url(relative_path, "tree", ref, target))
            cell = f'<a href="{url}">{escape(label)}</a>'
        rows.append(f"<tr><td>{cell}</td><td>{entry.kind}</td></tr>")
    if not rows:
        return "<p>Empty folder</p>"
    return "<table>\n" + "\n".join(rows) + "\n</table>"


def _tree_page(
    service: RepositoryService,
    relative_path: str,
    ref: str,
    path: str,
) -> str:
    title = f"{relative_path} @ {ref}" + (f": {path}" if path else "")
    if service.path_kind(relative_path, ref, path) == "tree":
        body = _render_tree(relative_path, ref, path, service.list_tree(relative_path, ref, path))
        return _render_page(title, body)

    content = service.read_file(relative_path, ref, path)
    if b"\0" in content[:_BINARY_SNIFF_BYTES]:
        body = "<p>Binary file not shown</p>"
    else:
        body = f"<pre>{escape(content.decode('utf-8', errors='replace'))}</pre>"
    return _render_page(title, body)


def _commit_page(service: RepositoryService, relative_path: str, rev: str) -> str:
    commit, patch = service.commit(relative_path, rev)
    body = "\n".join(
        [
            f"<p>Commit <code>{commit.sha}</code></p>",
            f"<p>Author: {escape(commit.author_name)} &lt;{escape(commit.author_email)}&gt;</p>",
            f"<p>Date: {commit.committed_at.strftime('%Y-%m-%d %H:%M:%S %Z')}</p>",
            f"<h2>{escape(commit.subject)}</h2>",
            f"<pre>{escape(patch)}</pre>" if patch else "<p>No changes against a parent</p>",
        ]
    )
    return _render_page(f"{relative_path}: {commit.short_sha}", body)


@router.get("/", response_class=HTMLResponse)
def index(service: RepositoryServiceDep, resolver: CloneURLResolverDep) -> str:
    """List every repository in the tree."""
    try:
        result = service.scan()
    except ScanAccessError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    return _render_listing("Repositories", result.repositories, result.warnings, resolver)


@router.get("/repos/{tree_path:path}", response_class=HTMLResponse)
def browse(
    tree_path: str,
    service: RepositoryServiceDep,
    resolver: CloneURLResolverDep,
) -> str:
    """Show an organization folder, or a repository and its contents."""
    parts = split_path(tree_path)
    repo_index = next((i for i, part in enumerate(parts) if is_repository(part)), None)
    if repo_index is None:
        return _organization_page(service, resolver, parts)

    relative_path = "/".join(parts[: repo_index + 1])
    action, *rest = parts[repo_index + 1:] or [""]
    try:
        record = service.get(relative_path)
        if not record.is_valid:
            raise RepositoryNotFoundError(f"not a valid git repository: {relative_path}")
        if action == "":
            return _repository_page(service, resolver, relative_path)
        if action == "tree":
            ref = rest[0] if rest else "HEAD"
            return _tree_page(service, relative_path, ref, "/".join(rest[1:]))
        if action == "commit" and len(rest) == 1:
            return _commit_page(service, relative_path, rest[0])
    except InvalidNameError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except (RepositoryNotFoundError, RevisionNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="page not found")


def _organization_page(
    service: RepositoryService,
    resolver: CloneURLResolver,
    parts: list[str],
) -> str:
    try:
        for part in parts:
            validate_org_folder(part)
        result = service.scan()
    except InvalidNameError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ScanAccessError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    prefix = "/".join(parts) + "/" if parts else ""
    records = [r for r in result.repositories if r.relative_path.startswith(prefix)]
    return _render_listing(prefix.rstrip("/") or "Repositories", records, result.warnings, resolver)
