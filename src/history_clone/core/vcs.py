"""Version-control backend interface."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from history_clone.core.history import LogEntry


class VcsBackend(ABC):
    """Operations needed from a version-control tool for one repository.

    A backend instance is the explicit handle for the repository's working
    copy. All commands run inside ``path``.
    """

    kind: str = ""
    metadata_dir: str = ""
    # Whether log_entries() omits the parent of a commit whose only parent
    # is the preceding commit
    implicit_parents: bool = False
    default_branch: str = ""

    def __init__(self, path: Path):
        self.path = Path(path).resolve()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"

    def exists(self) -> bool:
        """Check if the repository exists."""
        return self.path.exists() and (self.path / self.metadata_dir).exists()

    @abstractmethod
    def init(self) -> None:
        """Create an empty repository at ``path``."""

    @abstractmethod
    def log_entries(self) -> Iterable[LogEntry]:
        """Yield ``(identity, seq, parent_refs)`` for every commit, oldest first."""

    @abstractmethod
    def detail_output(self, identity: str, separator: str) -> str:
        """Message, branch, date and author of a commit joined by ``separator``."""

    @abstractmethod
    def history_messages(self) -> Iterable[Tuple[str, str]]:
        """Yield ``(identity, message)`` for every commit, oldest first."""

    @abstractmethod
    def resolve(self, revision: str) -> str:
        """Full identity of ``revision``."""

    @abstractmethod
    def update(self, identity: str) -> None:
        """Update the working tree to ``identity``."""

    @abstractmethod
    def set_parents(self, parents: List[str]) -> None:
        """Set the working-copy parents for the next commit (none for a root)."""

    @abstractmethod
    def set_branch(self, name: str) -> None:
        """Set the branch the next commit goes on."""

    @abstractmethod
    def stage_all(self, similarity: Optional[int] = None) -> None:
        """Stage all additions and removals in the working tree."""

    @abstractmethod
    def commit(self, message: str, author: str, date: str) -> str:
        """Commit the staged state and return the new identity."""
