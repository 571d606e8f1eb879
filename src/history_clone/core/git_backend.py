"""Git repositories driven through GitPython."""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import git
from git import Repo

from history_clone.core.errors import ExternalToolFailure
from history_clone.core.history import LogEntry
from history_clone.core.vcs import VcsBackend

logger = logging.getLogger(__name__)

# Side-branch tips that nothing else references yet
TIPS_NAMESPACE = "refs/history-clone/tips"

AUTHOR_PATTERN = re.compile(r"^(.*?)\s*<([^>]*)>\s*$")


def split_author(author: str) -> Tuple[str, str]:
    """Split ``Name <email>`` into its name and email parts."""
    match = AUTHOR_PATTERN.match(author)
    if match:
        return match.group(1), match.group(2)
    return author, ""


class GitBackend(VcsBackend):
    """Git repository handle.

    Commits are created with ``git commit-tree`` so that any parents can be
    given, independent of what HEAD points at.
    """

    kind = "git"
    metadata_dir = ".git"
    implicit_parents = False
    default_branch = "main"

    def __init__(self, path: Path):
        super().__init__(path)
        self._repo: Optional[Repo] = None
        self._parents: List[str] = []
        self._branch: Optional[str] = None

    @property
    def repo(self) -> Repo:
        """Get the git repository."""
        if self._repo is None:
            self._repo = Repo(self.path)
        return self._repo

    def _git(self, command: str, *args: str) -> str:
        """Run a git command in this repository."""
        try:
            return getattr(self.repo.git, command)(*args)
        except git.exc.GitCommandError as e:
            command_line = " ".join(str(part) for part in e.command)
            raise ExternalToolFailure(command_line, str(e.stderr or e.stdout or "")) from e

    def _has_refs(self, *patterns: str) -> bool:
        return bool(self._git("for_each_ref", "--count=1", "--format=%(refname)", *patterns).strip())

    def _rev_parse_quiet(self, ref: str) -> Optional[str]:
        try:
            return self.repo.git.rev_parse("--verify", "--quiet", ref) or None
        except git.exc.GitCommandError:
            return None

    def init(self) -> None:
        """Initialize an empty git repository."""
        self.path.mkdir(parents=True, exist_ok=True)
        self._repo = Repo.init(self.path)

    def log_entries(self) -> Iterable[LogEntry]:
        if not self._has_refs("refs/heads", "refs/tags", "refs/remotes"):
            return []

        output = self._git(
            "rev_list", "--date-order", "--reverse", "--parents", "--branches", "--tags", "--remotes"
        )
        entries = []
        for seq, line in enumerate(output.splitlines()):
            identity, *parents = line.split()
            entries.append((identity, seq, parents))
        return entries

    def detail_output(self, identity: str, separator: str) -> str:
        # Git commits carry no branch label, so that field stays empty
        fmt = separator.join(["%B", "", "%aI", "%an <%ae>"])
        return self._git("log", "-1", f"--format={fmt}", identity)

    def history_messages(self) -> Iterable[Tuple[str, str]]:
        if not self._has_refs():
            return []

        separator = "\x1e\x1f"
        output = self._git("log", "--all", "--reverse", "--topo-order", f"--format=%H{separator}%B{separator}")
        fields = output.split(separator)
        return [
            (identity.strip(), message)
            for identity, message in zip(fields[0::2], fields[1::2])
        ]

    def resolve(self, revision: str) -> str:
        return self._git("rev_parse", "--verify", f"{revision}^{{commit}}").strip()

    def update(self, identity: str) -> None:
        self._git("checkout", "--force", "--detach", identity)

    def set_parents(self, parents: List[str]) -> None:
        self._parents = list(parents)
        if self._parents:
            self._git("read_tree", self._parents[0])
        else:
            self._git("read_tree", "--empty")

    def set_branch(self, name: str) -> None:
        self._branch = name

    def stage_all(self, similarity: Optional[int] = None) -> None:
        # Git detects renames when diffing, so similarity is not recorded
        self._git("add", "--all", ".")

    def commit(self, message: str, author: str, date: str) -> str:
        name, email = split_author(author)
        tree = self._git("write_tree").strip()

        args = [tree]
        for parent in self._parents:
            args.extend(["-p", parent])
        args.extend(["-m", message])

        with self.repo.git.custom_environment(
            GIT_AUTHOR_NAME=name,
            GIT_AUTHOR_EMAIL=email,
            GIT_AUTHOR_DATE=date,
            GIT_COMMITTER_NAME=name,
            GIT_COMMITTER_EMAIL=email,
            GIT_COMMITTER_DATE=date,
        ):
            identity = self._git("commit_tree", *args).strip()

        self._advance_branch(identity)
        return identity

    def _advance_branch(self, identity: str) -> None:
        """Point the current branch at ``identity``, keeping old tips reachable."""
        ref = f"refs/heads/{self._branch or self.default_branch}"
        previous = self._rev_parse_quiet(ref)

        tips = self._git("for_each_ref", "--format=%(refname)", TIPS_NAMESPACE).split()
        for parent in self._parents:
            tip_ref = f"{TIPS_NAMESPACE}/{parent}"
            if tip_ref in tips:
                self._git("update_ref", "-d", tip_ref)

        if (
            previous
            and previous not in self._parents
            and not self.repo.is_ancestor(previous, identity)
        ):
            logger.debug("Keeping %s reachable as a side-branch tip", previous)
            self._git("update_ref", f"{TIPS_NAMESPACE}/{previous}", previous)

        self._git("update_ref", ref, identity)
        self._git("symbolic_ref", "HEAD", ref)
