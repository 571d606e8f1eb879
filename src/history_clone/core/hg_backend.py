"""Mercurial repositories driven through the ``hg`` executable."""

import logging
import os
import shlex
import subprocess
from typing import Iterable, List, Optional, Tuple

from history_clone.core.errors import ExternalToolFailure, MalformedHistory
from history_clone.core.history import LogEntry
from history_clone.core.vcs import VcsBackend

logger = logging.getLogger(__name__)

NULL_NODE = "0" * 40


class HgBackend(VcsBackend):
    """Mercurial repository handle."""

    kind = "hg"
    metadata_dir = ".hg"
    # hg log {parents} is empty when the only parent is the previous revision
    implicit_parents = True
    default_branch = "default"

    def _run(self, *args: str) -> str:
        """Run an hg command in this repository and return its output."""
        command = ["hg", *args]
        command_line = shlex.join(command)
        logger.debug("Running %s in %s", command_line, self.path)

        # HGPLAIN keeps output stable regardless of user configuration
        env = {**os.environ, "HGPLAIN": "1"}
        try:
            result = subprocess.run(  # noqa: S603
                command,
                cwd=str(self.path),
                capture_output=True,
                text=True,
                env=env,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolFailure(command_line, "hg executable not found") from e

        if result.returncode != 0:
            raise ExternalToolFailure(command_line, result.stderr + result.stdout)
        return result.stdout

    def init(self) -> None:
        """Initialize an empty Mercurial repository."""
        self.path.mkdir(parents=True, exist_ok=True)
        self._run("init")

    def log_entries(self) -> Iterable[LogEntry]:
        output = self._run("log", "--template", "{rev},{node},{parents};")
        entries = []
        for item in reversed([item for item in output.split(";") if item.strip()]):
            rev, node, parents = item.split(",", 2)
            entries.append((node.strip(), int(rev), parents.split()))
        return entries

    def detail_output(self, identity: str, separator: str) -> str:
        template = separator.join(["{desc}", "{branches}", "{date|hgdate}", "{author}"])
        return self._run("log", "-r", identity, "--template", template)

    def history_messages(self) -> Iterable[Tuple[str, str]]:
        separator = "\x1e\x1f"
        output = self._run("log", "--template", f"{{node}}{separator}{{desc}}{separator}")
        fields = output.split(separator)
        pairs = [
            (node.strip(), message)
            for node, message in zip(fields[0::2], fields[1::2])
        ]
        pairs.reverse()
        return pairs

    def resolve(self, revision: str) -> str:
        node = self._run("log", "-r", revision, "-l", "1", "--template", "{node}").strip()
        if not node:
            raise MalformedHistory(f"Revision '{revision}' not found in {self.path}")
        return node

    def update(self, identity: str) -> None:
        self._run("update", "-r", identity)

    def set_parents(self, parents: List[str]) -> None:
        self._run("debugsetparents", *(parents or [NULL_NODE]))

    def set_branch(self, name: str) -> None:
        self._run("branch", "--force", name)

    def stage_all(self, similarity: Optional[int] = None) -> None:
        args = ["addremove"]
        if similarity is not None:
            args.extend(["--similarity", str(similarity)])
        self._run(*args)

    def commit(self, message: str, author: str, date: str) -> str:
        self._run("commit", "-A", "--message", message, "--date", date, "--user", author)
        return self._run("log", "-r", ".", "--template", "{node}").strip()
