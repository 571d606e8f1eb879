"""Source to destination commit mapping stored in destination commit messages."""

import logging
import re
from typing import Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

PROVENANCE_PATTERN = re.compile(r"\[clonedfrom:(.*?)\]")


def tag_message(message: str, source_identity: str) -> str:
    """Append the provenance tag for ``source_identity`` to a commit message."""
    return f"{message}\n\n[clonedfrom:{source_identity}]"


def extract_source_identity(message: str) -> Optional[str]:
    """Return the source identity recorded in ``message``, if any."""
    # The tag added by this tool comes last; earlier ones are carried over
    matches = PROVENANCE_PATTERN.findall(message)
    return matches[-1] if matches else None


def build_mapping(history: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """Build a mapping from ``(destination_identity, message)`` pairs.

    Pairs must be in destination history order, oldest first. Each
    destination commit maps onto itself, and its tagged source identity
    maps onto it. When two commits carry the same tag the later one wins.
    """
    mapping: Dict[str, str] = {}
    tagged: Dict[str, str] = {}
    for identity, message in history:
        mapping[identity] = identity
        source_identity = extract_source_identity(message)
        if not source_identity:
            continue

        if source_identity in tagged and tagged[source_identity] != identity:
            logger.warning(
                "Source commit %s is replayed by both %s and %s; using %s",
                source_identity,
                tagged[source_identity],
                identity,
                identity,
            )
        tagged[source_identity] = identity
        mapping[source_identity] = identity

    return mapping


def load_mapping(dest) -> Dict[str, str]:
    """Load the mapping recorded in the history of destination ``dest``."""
    mapping = build_mapping(dest.history_messages())
    logger.debug("Loaded %d mapping entries from %s", len(mapping), dest.path)
    return mapping
