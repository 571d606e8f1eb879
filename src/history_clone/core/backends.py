"""Locating and opening repositories."""

from pathlib import Path
from typing import Dict, Optional, Type

from history_clone.core.errors import RepositoryError
from history_clone.core.git_backend import GitBackend
from history_clone.core.hg_backend import HgBackend
from history_clone.core.vcs import VcsBackend

BACKENDS: Dict[str, Type[VcsBackend]] = {
    GitBackend.kind: GitBackend,
    HgBackend.kind: HgBackend,
}


def detect_kind(path: Path) -> Optional[str]:
    """Return the kind of repository at ``path``, or None."""
    for kind, backend in BACKENDS.items():
        if (Path(path) / backend.metadata_dir).exists():
            return kind
    return None


def open_repository(path: Path, kind: Optional[str] = None, create: bool = False) -> VcsBackend:
    """Open the repository at ``path``.

    ``kind`` defaults to the kind detected at ``path``. With ``create``, a
    missing repository is initialized.
    """
    detected = detect_kind(path)
    kind = kind or detected
    if kind is None:
        raise RepositoryError(f"No git or Mercurial repository found in {path}")
    if kind not in BACKENDS:
        raise RepositoryError(f"Unsupported repository kind '{kind}'")
    if detected and detected != kind:
        raise RepositoryError(f"{path} is a {detected} repository, expected {kind}")

    backend = BACKENDS[kind](path)
    if not backend.exists():
        if not create:
            raise RepositoryError(f"No {kind} repository found in {path}")
        backend.init()
    return backend
