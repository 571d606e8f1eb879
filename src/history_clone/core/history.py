"""Reading commit logs from a source repository."""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from history_clone.core.errors import FieldParseError, MalformedHistory
from history_clone.models.commit import CommitDetail, CommitRecord

logger = logging.getLogger(__name__)

# Field separator for detail output, chosen to never occur in commit text
SEPARATOR = "akjfawejalejflakjflakjef"

DETAIL_FIELDS = ("message", "branch", "date", "author")

LogEntry = Tuple[str, int, Sequence[str]]


class HistoryLog:
    """Commit records of one repository, oldest first."""

    def __init__(self):
        self._records: List[CommitRecord] = []
        self._by_identity: Dict[str, CommitRecord] = {}
        self._by_seq: Dict[int, CommitRecord] = {}

    def add(self, record: CommitRecord) -> None:
        self._records.append(record)
        self._by_identity[record.identity] = record
        self._by_seq[record.seq] = record

    def __getitem__(self, index: int) -> CommitRecord:
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CommitRecord]:
        return iter(self._records)

    def __contains__(self, identity: str) -> bool:
        return identity in self._by_identity

    @property
    def oldest(self) -> Optional[CommitRecord]:
        return self._records[0] if self._records else None

    @property
    def newest(self) -> Optional[CommitRecord]:
        return self._records[-1] if self._records else None

    def get(self, identity: str) -> Optional[CommitRecord]:
        """Look up a record by its full identity."""
        return self._by_identity.get(identity)

    def lookup(self, ref: str) -> Optional[CommitRecord]:
        """Resolve a possibly abbreviated reference to a record.

        Accepts a full identity, a ``seq:shortid`` pair, a bare sequence
        number, or a unique identity prefix.
        """
        ref = ref.strip()
        if ref in self._by_identity:
            return self._by_identity[ref]

        if ":" in ref:
            seq_text, _, short = ref.partition(":")
            try:
                record = self._by_seq.get(int(seq_text))
            except ValueError:
                return None
            if record is not None and record.identity.startswith(short):
                return record
            return None

        if ref.isdigit() and int(ref) in self._by_seq:
            return self._by_seq[int(ref)]

        matches = [r for r in self._records if r.identity.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
        return None

    def resolve(self, ref: str) -> CommitRecord:
        """Like :meth:`lookup` but raises :class:`MalformedHistory` on failure."""
        record = self.lookup(ref)
        if record is None:
            raise MalformedHistory(f"Unable to resolve commit reference '{ref}'")
        return record


def _is_null_ref(ref: str) -> bool:
    seq_text, _, short = ref.partition(":")
    return seq_text == "-1" or set(short or ref) == {"0"}


def parse_log(entries: Iterable[LogEntry], implicit_parents: bool = False) -> HistoryLog:
    """Build a :class:`HistoryLog` from ``(identity, seq, parent_refs)`` entries.

    Entries must be ordered oldest first. Parent references are resolved
    against the records read so far. When ``implicit_parents`` is set, an
    entry without parent references is a child of the entry before it.
    """
    log = HistoryLog()
    for index, (identity, seq, refs) in enumerate(entries):
        refs = [ref for ref in refs if ref]
        if not refs:
            if implicit_parents and index > 0:
                parents = [log[index - 1].identity]
            else:
                parents = []
        else:
            # An explicit null parent marks an additional root
            parents = []
            for ref in refs:
                if _is_null_ref(ref):
                    continue
                parent = log.lookup(ref)
                if parent is None:
                    raise MalformedHistory(
                        f"Parent reference '{ref}' of {identity} does not match "
                        f"any earlier commit in the log"
                    )
                parents.append(parent.identity)

            if len(parents) > 2:
                raise MalformedHistory(
                    f"Commit {identity} has {len(parents)} parents; at most two are supported"
                )

        log.add(CommitRecord(identity=identity, seq=seq, parents=parents))

    logger.debug("Read %d commit(s) from log", len(log))
    return log


def read_log(backend) -> HistoryLog:
    """Read the full log of ``backend``, oldest first."""
    return parse_log(backend.log_entries(), implicit_parents=backend.implicit_parents)


def split_fields(output: str, count: int, separator: str = SEPARATOR) -> List[str]:
    """Split separator-joined output into exactly ``count`` fields."""
    fields = output.split(separator)
    # A trailing separator leaves one empty field behind
    if len(fields) == count + 1 and not fields[-1].strip():
        fields = fields[:-1]
    if len(fields) != count:
        raise FieldParseError(
            f"Expected {count} fields but got {len(fields)} in output:\n{output}"
        )
    return fields


def read_detail(backend, record: CommitRecord) -> CommitDetail:
    """Fetch message, branch, date and author for ``record``."""
    output = backend.detail_output(record.identity, SEPARATOR)
    try:
        message, branch, date, author = split_fields(output, len(DETAIL_FIELDS))
    except FieldParseError as e:
        e.source_identity = record.identity
        raise

    return CommitDetail(
        identity=record.identity,
        seq=record.seq,
        parents=record.parents,
        message=message.strip("\n"),
        branch=branch.strip() or None,
        date=date.strip(),
        author=author.strip(),
    )
