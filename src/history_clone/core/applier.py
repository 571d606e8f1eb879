"""Replaying a single source commit onto the destination repository."""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Iterator, List, Optional

from history_clone.core.errors import ExternalToolFailure, FilterError
from history_clone.core.mapping import tag_message
from history_clone.core.vcs import VcsBackend
from history_clone.models.commit import CommitDetail
from history_clone.models.options import CloneOptions

logger = logging.getLogger(__name__)


def _walk(root: Path, exclude: str) -> Iterator[Path]:
    """Relative paths below ``root``, parents before children."""
    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d != exclude)
        base = Path(current)
        for name in dirs + sorted(files):
            yield (base / name).relative_to(root)


def _kind(path: Path) -> Optional[str]:
    if path.is_symlink():
        return "link"
    if path.is_dir():
        return "dir"
    if path.exists():
        return "file"
    return None


def mirror_tree(source: Path, dest: Path, exclude: str) -> None:
    """Make ``dest`` an exact copy of ``source``.

    Directories named ``exclude`` are neither copied nor removed, at any
    depth.
    """
    source, dest = Path(source), Path(dest)
    try:
        # Children come before their parents when removing
        for rel in reversed(list(_walk(dest, exclude))):
            target = dest / rel
            kind = _kind(target)
            if kind == _kind(source / rel):
                continue
            if kind == "dir":
                shutil.rmtree(target)
            else:
                target.unlink()

        for rel in _walk(source, exclude):
            item, target = source / rel, dest / rel
            kind = _kind(item)
            if kind == "link":
                if _kind(target) is not None:
                    target.unlink()
                target.symlink_to(os.readlink(item))
            elif kind == "dir":
                target.mkdir(parents=True, exist_ok=True)
            else:
                shutil.copy2(item, target)
    except OSError as e:
        raise ExternalToolFailure(f"mirror {source} -> {dest}", str(e)) from e


def run_filter(command: str, cwd: Path) -> None:
    """Run the user's filter command with ``cwd`` as working directory."""
    logger.debug("Running filter %r in %s", command, cwd)
    result = subprocess.run(  # noqa: S602
        command,
        shell=True,
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )
    output = result.stdout + result.stderr
    if result.returncode != 0:
        raise FilterError(command, output)
    if output.strip():
        logger.debug("Filter output:\n%s", output.rstrip())


class CommitApplier:
    """Creates the destination commit for one ready source commit."""

    def __init__(self, source: VcsBackend, dest: VcsBackend, options: CloneOptions):
        self.source = source
        self.dest = dest
        self.options = options

    @property
    def default_branch(self) -> str:
        return self.options.default_branch or self.dest.default_branch

    def apply(self, detail: CommitDetail, dest_parents: List[str]) -> str:
        """Replay ``detail`` on top of ``dest_parents`` and return the new identity."""
        self.source.update(detail.identity)

        self.dest.set_parents(dest_parents)
        self.dest.set_branch(detail.branch or self.default_branch)

        mirror_tree(self.source.path, self.dest.path, self.source.metadata_dir)

        # Forces a change even when the filter leaves the tree identical
        (self.dest.path / self.options.marker_file).write_text(detail.identity)

        if self.options.filter_command:
            run_filter(self.options.filter_command, self.dest.path)

        self.dest.stage_all(self.options.similarity)
        return self.dest.commit(
            tag_message(detail.message, detail.identity), detail.author, detail.date
        )
