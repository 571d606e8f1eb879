"""Error types raised while cloning history."""

from typing import Optional


class HistoryCloneError(RuntimeError):
    """Base class for fatal clone errors.

    ``source_identity`` names the source commit being replayed when the
    error occurred, if any.
    """

    def __init__(self, message: str, source_identity: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source_identity = source_identity

    def __str__(self) -> str:
        if self.source_identity:
            return f"{self.message}\n(while replaying {self.source_identity})"
        return self.message


class RepositoryError(HistoryCloneError):
    """Path is not a repository of a supported kind."""


class MalformedHistory(HistoryCloneError):
    """Source log references a commit that cannot be resolved."""


class FieldParseError(HistoryCloneError):
    """Commit detail output did not have the expected number of fields."""


class CutoffError(HistoryCloneError):
    """Target revision lies before the cutoff revision."""


class ExternalToolFailure(HistoryCloneError):
    """A version-control command exited with a non-zero status."""

    def __init__(self, command: str, output: str = "", source_identity: Optional[str] = None):
        message = f"Error running:\n    {command}"
        if output.strip():
            message += f"\n{output.strip()}"
        super().__init__(message, source_identity)
        self.command = command
        self.output = output


class FilterError(ExternalToolFailure):
    """The user supplied filter exited with a non-zero status."""
