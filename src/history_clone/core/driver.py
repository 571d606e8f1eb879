"""Top-level clone orchestration."""

import logging
from pathlib import Path
from typing import Callable, List, Optional

from history_clone.core.applier import CommitApplier
from history_clone.core.backends import detect_kind, open_repository
from history_clone.core.history import read_detail, read_log
from history_clone.core.mapping import load_mapping
from history_clone.core.rewriter import GraphRewriter
from history_clone.models.commit import CommitDetail, CommitRecord
from history_clone.models.options import CloneOptions, CloneResult

logger = logging.getLogger(__name__)

ProgressFunc = Callable[[CommitDetail], None]


def clone_history(
    source_dir: Path,
    dest_dir: Path,
    options: Optional[CloneOptions] = None,
    progress: Optional[ProgressFunc] = None,
) -> CloneResult:
    """Replay the history of ``source_dir`` into ``dest_dir``.

    The destination repository is created when missing. Commits already
    replayed by an earlier run are recognized from their provenance tags
    and skipped, so an interrupted run can simply be started again.
    """
    options = options or CloneOptions()

    source = open_repository(source_dir)
    if options.dry_run and detect_kind(dest_dir) is None:
        dest = None
    else:
        dest = open_repository(dest_dir, kind=source.kind, create=True)

    log = read_log(source)
    mapping = load_mapping(dest) if dest else {}

    rewriter = GraphRewriter(
        log,
        mapping,
        target=source.resolve(options.target) if options.target else None,
        cutoff=source.resolve(options.cutoff) if options.cutoff else None,
    )
    logger.info("Cloning %s up to %s (cutoff %s)", source.path, rewriter.target, rewriter.cutoff)

    if options.dry_run:
        replayed = [record.identity for record in rewriter.plan()]
        return CloneResult(
            target=rewriter.target,
            cutoff=rewriter.cutoff,
            replayed=replayed,
            mapped=len(mapping) + len(replayed),
        )

    applier = CommitApplier(source, dest, options)

    def replay(record: CommitRecord, dest_parents: List[str]) -> str:
        detail = read_detail(source, record)
        logger.info("%d %s", detail.seq, detail.summary)
        if progress:
            progress(detail)
        return applier.apply(detail, dest_parents)

    replayed = rewriter.run(replay)
    return CloneResult(
        target=rewriter.target,
        cutoff=rewriter.cutoff,
        replayed=replayed,
        mapped=len(rewriter.mapping),
    )
