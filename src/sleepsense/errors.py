"""Exception hierarchy for sleepsense.

Only the I/O seams raise: the sample source, the entry store and the model
loader.  Scoring never raises; a failed or missing model degrades to the
heuristic instead.
"""

from __future__ import annotations

from uuid import UUID


class SleepSenseError(Exception):
    """Base class for all sleepsense errors."""


class SourceQueryFailed(SleepSenseError):
    """Reading samples from the sample source failed."""


class PersistenceFailed(SleepSenseError):
    """A single entry could not be written to the entry store."""

    def __init__(self, message: str, entry_id: UUID | None = None) -> None:
        super().__init__(message)
        self.entry_id = entry_id


class ModelLoadError(SleepSenseError):
    """The scoring model artifact is missing or malformed."""


class SyncFailed(SleepSenseError):
    """One or more saves in a sync window failed.

    ``errors`` holds every per-sample failure in input order; ``last_error``
    is the final one, which is what callers historically saw.
    """

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = list(errors)
        self.last_error = self.errors[-1] if self.errors else None
        noun = "save" if len(self.errors) == 1 else "saves"
        super().__init__(f"{len(self.errors)} {noun} failed; last error: {self.last_error}")
