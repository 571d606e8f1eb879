"""Run configuration and results."""

from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_MARKER_FILE = "cloned_revision.txt"
DEFAULT_SIMILARITY = 90


class CloneOptions(BaseModel):
    """Options controlling a history clone run."""

    target: Optional[str] = None
    cutoff: Optional[str] = None
    filter_command: Optional[str] = None
    similarity: int = Field(default=DEFAULT_SIMILARITY, ge=0, le=100)
    marker_file: str = DEFAULT_MARKER_FILE
    default_branch: Optional[str] = None
    dry_run: bool = False


class CloneResult(BaseModel):
    """Outcome of a history clone run."""

    target: str
    cutoff: str
    replayed: List[str] = []
    mapped: int = 0

    @property
    def up_to_date(self) -> bool:
        return not self.replayed
