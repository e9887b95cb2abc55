"""Clone URL resolver for repositories in the tree."""

from pathlib import Path, PurePosixPath


class CloneURLResolver:
    """Resolves a repository's relative path to the URL clients clone from.

    Supports two modes:
    - Local: /absolute/path/to/repos/org/project.git
    - Template: ssh://git@example.com/{path} -> ssh://git@example.com/org/project.git
    """

    def __init__(self, root: Path | str, template: str | None = None) -> None:
        self._root = Path(root).expanduser().absolute()
        self._template = template

    def resolve(self, relative_path: str) -> str:
        """Resolve a repository path relative to the root to a clone URL."""
        relative = PurePosixPath(relative_path.replace("\\", "/").strip("/"))
        if self._template:
            return self._resolve_template(relative)
        return self._resolve_local(relative)

    def _resolve_local(self, relative: PurePosixPath) -> str:
        return str(self._root.joinpath(*relative.parts))

    def _resolve_template(self, relative: PurePosixPath) -> str:
        template = self._template or ""
        url = template.replace("{path}", str(relative))
        url = url.replace("{name}", relative.name)
        return url
