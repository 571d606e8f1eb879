"""History graph rewriting: decides which source commits to replay, and when."""

import logging
from typing import Callable, Dict, List, Optional

from history_clone.core.errors import CutoffError, HistoryCloneError, MalformedHistory
from history_clone.core.history import HistoryLog
from history_clone.models.commit import CommitRecord

logger = logging.getLogger(__name__)

# Receives a ready source record and its destination parents, returns the
# identity of the destination commit created for it.
ReplayFunc = Callable[[CommitRecord, List[str]], str]


class GraphRewriter:
    """Replays the ancestry of a target commit onto a destination.

    The traversal works on a stack of pending source identities. A node
    is replayed only once its effective parents are mapped; otherwise it
    is pushed back underneath its unmapped parents. Parents that predate
    the cutoff are replaced by the cutoff, and the cutoff itself becomes
    a root.
    """

    def __init__(
        self,
        log: HistoryLog,
        mapping: Dict[str, str],
        target: Optional[str] = None,
        cutoff: Optional[str] = None,
    ):
        if not len(log):
            raise MalformedHistory("Source repository has no commits")

        self.log = log
        self.mapping = mapping
        self.target = self._record(target).identity if target else log.newest.identity
        self.cutoff = self._record(cutoff).identity if cutoff else log.oldest.identity
        self._cutoff_record = self._record(self.cutoff)

        if self._record(self.target).seq < self._cutoff_record.seq:
            raise CutoffError(
                f"Target {self.target} precedes cutoff {self.cutoff}; "
                f"nothing at or after the cutoff leads to it"
            )

    def _record(self, identity: str) -> CommitRecord:
        record = self.log.get(identity)
        if record is None:
            raise MalformedHistory(f"Commit {identity} is not in the source log")
        return record

    def effective_parents(self, record: CommitRecord) -> List[str]:
        """Parents of ``record`` after applying the cutoff rules."""
        if record.identity == self.cutoff:
            return []

        parents: List[str] = []
        for parent in record.parents:
            if self._record(parent).seq < self._cutoff_record.seq:
                parent = self.cutoff
            if parent not in parents:
                parents.append(parent)
        return parents

    def run(self, replay: ReplayFunc) -> List[str]:
        """Replay every unmapped ancestor of the target.

        ``self.mapping`` is updated after each replayed commit. Returns the
        replayed source identities in commit order. Any error raised by
        ``replay`` aborts the traversal.
        """
        replayed: List[str] = []
        frontier = [self.target]

        while frontier:
            node = frontier.pop()
            if node in self.mapping:
                continue

            record = self._record(node)
            parents = self.effective_parents(record)
            unmapped = [parent for parent in parents if parent not in self.mapping]
            if unmapped:
                frontier.append(node)
                frontier.extend(unmapped)
                continue

            dest_parents = [self.mapping[parent] for parent in parents]
            try:
                self.mapping[node] = replay(record, dest_parents)
            except HistoryCloneError as e:
                if not e.source_identity:
                    e.source_identity = node
                raise
            logger.debug("Mapped %s -> %s", node, self.mapping[node])
            replayed.append(node)

        return replayed

    def plan(self) -> List[CommitRecord]:
        """Records that :meth:`run` would replay, in order, without replaying."""
        simulation = GraphRewriter(self.log, dict(self.mapping), self.target, self.cutoff)
        planned: List[CommitRecord] = []

        def record_only(record: CommitRecord, dest_parents: List[str]) -> str:
            planned.append(record)
            return record.identity

        simulation.run(record_only)
        return planned
