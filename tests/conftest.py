"""Shared fixtures for building source repositories."""

import itertools
import shutil
import tempfile
from pathlib import Path

import pytest
from git import Repo


class SourceRepoBuilder:
    """Creates commits with exact trees and parents in a git repository."""

    def __init__(self, path: Path):
        self.path = path
        self.repo = Repo.init(path)
        self._clock = itertools.count(1)

    def commit(self, files, message, parents=(), branch="main", author="Test User"):
        """Commit ``files`` (name -> content) as the complete tree."""
        for item in self.path.iterdir():
            if item.name == ".git":
                continue
            if item.is_dir():
                shutil.rmtree(item)
            else:
                item.unlink()
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)

        self.repo.git.read_tree("--empty")
        self.repo.git.add("--all", ".")
        tree = self.repo.git.write_tree()

        args = [tree]
        for parent in parents:
            args.extend(["-p", parent])
        args.extend(["-m", message])

        # Increasing dates keep the source log order deterministic
        date = f"2024-01-01T00:{next(self._clock):02d}:00+00:00"
        with self.repo.git.custom_environment(
            GIT_AUTHOR_NAME=author,
            GIT_AUTHOR_EMAIL="test@example.com",
            GIT_AUTHOR_DATE=date,
            GIT_COMMITTER_NAME=author,
            GIT_COMMITTER_EMAIL="test@example.com",
            GIT_COMMITTER_DATE=date,
        ):
            sha = self.repo.git.commit_tree(*args)

        self.repo.git.update_ref(f"refs/heads/{branch}", sha)
        self.repo.git.symbolic_ref("HEAD", f"refs/heads/{branch}")
        return sha


@pytest.fixture
def workspace():
    """Temporary directory holding source and destination repositories."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def source_builder(workspace):
    path = workspace / "source"
    path.mkdir()
    return SourceRepoBuilder(path)


@pytest.fixture
def diamond_source(source_builder):
    """Source history A <- B, A <- C, (B, C) <- D with files per commit.

    Returns the builder and a dict of commit identities by letter.
    """
    b = source_builder
    a = b.commit({"README.md": "# Project\n", "app.py": "print('a')\n"}, "Add project")
    bb = b.commit(
        {"README.md": "# Project\n", "app.py": "print('a')\n", "feature.py": "FEATURE = 1\n"},
        "Add feature",
        parents=[a],
    )
    c = b.commit(
        {"README.md": "# Project\n\nDocs\n", "app.py": "print('a')\n", "secret.txt": "hunter2\n"},
        "Write docs",
        parents=[a],
        branch="docs",
    )
    d = b.commit(
        {
            "README.md": "# Project\n\nDocs\n",
            "app.py": "print('a')\n",
            "feature.py": "FEATURE = 1\n",
            "secret.txt": "hunter2\n",
        },
        "Merge docs",
        parents=[bb, c],
    )
    return b, {"A": a, "B": bb, "C": c, "D": d}
