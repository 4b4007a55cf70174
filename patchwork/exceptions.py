"""Custom exceptions and warnings for Patchwork."""


class PatchworkError(Exception):
    """Base exception for all Patchwork errors."""

    pass


class MalformedRegion(PatchworkError, ValueError):
    """Raised when a hit or region has inconsistent fields."""

    pass


class ReferenceMismatch(PatchworkError):
    """Raised when a region does not belong to the collection's reference."""

    def __init__(self, message="", expected=None, found=None):
        super().__init__(message)
        self.expected = expected
        self.found = found


class ConfigurationError(PatchworkError):
    """Raised when configuration is invalid or missing."""

    pass


class ExternalToolError(PatchworkError):
    """Raised when an external tool execution fails."""

    def __init__(self, message="", command=None, returncode=None, stderr=None):
        """Initialize ExternalToolError with optional command details.

        Args:
            message: Error message
            command: Command that was executed (list of strings)
            returncode: Exit code from the command
            stderr: Standard error output from the command
        """
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class PatchworkWarning(UserWarning):
    """Base warning category for Patchwork."""

    pass


class EmptyInput(PatchworkWarning):
    """Issued when a reference has no aligned regions.

    Not an error: the concatenation of an empty collection is an all-gap
    alignment over the full reference.
    """

    pass
