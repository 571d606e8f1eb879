"""Tests for tree mirroring, filters and the commit applier."""

import os
from pathlib import Path

import pytest

from history_clone.core.applier import CommitApplier, mirror_tree, run_filter
from history_clone.core.errors import FilterError
from history_clone.models.commit import CommitDetail
from history_clone.models.options import CloneOptions


def write_files(root: Path, files):
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def list_files(root: Path, exclude=".git"):
    found = set()
    for current, dirs, files in os.walk(root):
        dirs[:] = [d for d in dirs if d != exclude]
        for name in files:
            found.add((Path(current) / name).relative_to(root).as_posix())
    return found


@pytest.fixture
def trees(workspace):
    source = workspace / "src"
    dest = workspace / "dst"
    source.mkdir()
    dest.mkdir()
    return source, dest


def test_mirror_copies_and_removes(trees):
    source, dest = trees
    write_files(source, {"a.txt": "new a", "sub/b.txt": "b", ".git/HEAD": "source"})
    write_files(dest, {"a.txt": "old a", "stale.txt": "x", "gone/c.txt": "c", ".git/HEAD": "dest"})

    mirror_tree(source, dest, ".git")

    assert list_files(dest) == {"a.txt", "sub/b.txt"}
    assert (dest / "a.txt").read_text() == "new a"
    assert not (dest / "gone").exists()
    # Metadata directories are left alone on both sides
    assert (dest / ".git" / "HEAD").read_text() == "dest"


def test_mirror_replaces_file_with_directory(trees):
    source, dest = trees
    write_files(source, {"thing/inner.txt": "inner"})
    write_files(dest, {"thing": "was a file"})

    mirror_tree(source, dest, ".git")

    assert (dest / "thing" / "inner.txt").read_text() == "inner"


def test_mirror_copies_symlinks(trees):
    source, dest = trees
    write_files(source, {"real.txt": "data"})
    (source / "link.txt").symlink_to("real.txt")

    mirror_tree(source, dest, ".git")

    assert (dest / "link.txt").is_symlink()
    assert os.readlink(dest / "link.txt") == "real.txt"


def test_run_filter_in_directory(trees):
    _, dest = trees
    write_files(dest, {"secret.txt": "hunter2", "code.py": "pass"})

    run_filter("rm secret.txt", dest)

    assert list_files(dest) == {"code.py"}


def test_run_filter_failure(trees):
    _, dest = trees

    with pytest.raises(FilterError) as excinfo:
        run_filter("echo scrubbing failed >&2; exit 3", dest)

    assert "scrubbing failed" in str(excinfo.value)
    assert excinfo.value.command == "echo scrubbing failed >&2; exit 3"


class FakeRepository:
    """Records the calls the applier makes."""

    metadata_dir = ".git"
    default_branch = "main"

    def __init__(self, path: Path):
        self.path = path
        self.calls = []

    def update(self, identity):
        self.calls.append(("update", identity))

    def set_parents(self, parents):
        self.calls.append(("set_parents", list(parents)))

    def set_branch(self, name):
        self.calls.append(("set_branch", name))

    def stage_all(self, similarity=None):
        self.calls.append(("stage_all", similarity, sorted(list_files(self.path))))

    def commit(self, message, author, date):
        self.calls.append(("commit", message, author, date))
        return "new-identity"


def make_detail(branch=None):
    return CommitDetail(
        identity="abc123",
        seq=4,
        parents=["p1"],
        message="Change things",
        branch=branch,
        date="2024-01-01 10:00 +0000",
        author="Jo <jo@example.com>",
    )


def test_applier_sequence(trees):
    source_path, dest_path = trees
    write_files(source_path, {"code.py": "pass", "secret.txt": "hunter2"})
    source, dest = FakeRepository(source_path), FakeRepository(dest_path)
    options = CloneOptions(filter_command="rm secret.txt", similarity=75)

    identity = CommitApplier(source, dest, options).apply(make_detail(), ["dest-p1"])

    assert identity == "new-identity"
    assert source.calls == [("update", "abc123")]
    assert dest.calls == [
        ("set_parents", ["dest-p1"]),
        ("set_branch", "main"),
        ("stage_all", 75, ["cloned_revision.txt", "code.py"]),
        (
            "commit",
            "Change things\n\n[clonedfrom:abc123]",
            "Jo <jo@example.com>",
            "2024-01-01 10:00 +0000",
        ),
    ]
    assert (dest_path / "cloned_revision.txt").read_text() == "abc123"


def test_applier_uses_commit_branch(trees):
    source_path, dest_path = trees
    dest = FakeRepository(dest_path)
    applier = CommitApplier(FakeRepository(source_path), dest, CloneOptions(default_branch="trunk"))

    applier.apply(make_detail(branch="stable"), [])
    applier.apply(make_detail(), [])

    branches = [call[1] for call in dest.calls if call[0] == "set_branch"]
    assert branches == ["stable", "trunk"]
    assert ("set_parents", []) in dest.calls


def test_applier_stops_on_filter_failure(trees):
    source_path, dest_path = trees
    dest = FakeRepository(dest_path)
    applier = CommitApplier(FakeRepository(source_path), dest, CloneOptions(filter_command="false"))

    with pytest.raises(FilterError):
        applier.apply(make_detail(), [])

    assert not [call for call in dest.calls if call[0] in ("stage_all", "commit")]
