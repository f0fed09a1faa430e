"""Exception hierarchy for Rewind.

Buffer and session mutations never raise for bad input; only the
export path and the engine service lifecycle surface errors.
"""

from __future__ import annotations


class RewindError(Exception):
    """Base class for all Rewind errors."""


class ExportBuildError(RewindError):
    """The export pipeline could not serialize or compress the bundle.

    Raised before anything is returned to the caller; recording state
    is left exactly as it was, so the export can be retried.
    """


class BundleFormatError(RewindError):
    """A byte string is not a readable export bundle."""


class EngineNotRunningError(RewindError):
    """A command was sent to an engine service that is not running."""
