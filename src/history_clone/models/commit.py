"""Commit models read from a source repository."""

from typing import List, Optional

from pydantic import BaseModel


class CommitRecord(BaseModel):
    """One entry of a source repository log."""

    identity: str
    seq: int  # Ordering only, never identity
    parents: List[str] = []

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


class CommitDetail(CommitRecord):
    """A commit record together with its descriptive fields."""

    message: str
    branch: Optional[str] = None
    date: str  # Tool-native format, handed back to the same tool on commit
    author: str

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        lines = self.message.strip().splitlines()
        return lines[0] if lines else ""
