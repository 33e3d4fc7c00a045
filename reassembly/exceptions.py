"""Custom exception classes for chunk reassembly."""


class ReassemblyError(Exception):
    """
    Base exception class for all reassembly errors.
    """
    pass


class ValidationError(ReassemblyError):
    """
    Raised when a required chunk message property is missing or invalid.
    """
    pass


class DecodeError(ReassemblyError):
    """
    Raised when the merged chunk text is not valid base64.
    """
    pass


class InflateError(ReassemblyError):
    """
    Raised when a deflate-compressed payload cannot be inflated.
    """
    pass


class MissingChunkError(ReassemblyError):
    """
    Raised when a part expected by the merge is not in the chunk store.
    """
    pass


class CleanupError(ReassemblyError):
    """
    Raised when a consumed chunk entry could not be deleted after all attempts.
    """
    pass


class SweepError(ReassemblyError):
    """
    Raised when a stale chunk entry could not be moved to the dead-letter area.
    """
    pass


class RevisionExhaustedError(ReassemblyError):
    """
    Raised when no free revision name is found for an artifact.
    """
    pass
