"""Error taxonomy for scaffold generation.

Per-file conditions (``SourceUnreadable``, ``RunnerInvocationFailed``,
``CoverageUnreadable``) are caught at the file-processing boundary and turned
into reported outcomes. ``EnvironmentUnavailable`` is the only one allowed to
abort a batch.
"""


class ScaffoldError(Exception):
    """Base exception for scaffold generation."""

    pass


class SourceUnreadable(ScaffoldError):
    """Raised when a source file is missing, unsupported or cannot be parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class RunnerInvocationFailed(ScaffoldError):
    """Raised when the external test runner cannot be spawned or exits non-zero."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


class CoverageUnreadable(ScaffoldError):
    """Raised when the coverage summary is missing, malformed or lacks the file."""

    pass


class EnvironmentUnavailable(ScaffoldError):
    """Raised when the parsing toolchain itself cannot be initialized."""

    pass
