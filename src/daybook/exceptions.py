"""
Core exceptions.
"""


class DaybookError(Exception):
    """Base exception for daybook errors."""


class ValidationFailed(DaybookError):
    """A user-facing rule was broken; the operation did not happen."""


class RecordNotFound(DaybookError):
    """The requested record or file does not exist."""


class BlobMissing(RecordNotFound):
    """The metadata exists but the stored file is gone."""
