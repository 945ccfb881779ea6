"""Error taxonomy for runtime preparation and flowchart generation."""

ANALYSIS_ERROR_PREFIX = "Flowchart generation failed: "


class FlowtextError(Exception):
    """Base class for every error flowtext raises on purpose."""


class RuntimeLoadError(FlowtextError):
    """The isolated interpreter could not be created or started."""


class PackageManagerLoadError(FlowtextError):
    """pip is unavailable in the isolated interpreter and could not be bootstrapped."""


class PackageInstallError(FlowtextError):
    """The analysis package failed to install into the isolated interpreter.

    ``output`` keeps pip's full stderr; the message only has its last line.
    """

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class ExecutionError(FlowtextError):
    """The analysis script raised, or the interpreter could not run it.

    ``traceback`` holds the formatted traceback reported by the isolated
    interpreter, when there is one.
    """

    def __init__(self, message: str, traceback: str | None = None):
        super().__init__(message)
        self.traceback = traceback


class AnalysisError(FlowtextError):
    """Failure surfaced to callers of ``analyze``, prefixed with a fixed message."""

    def __init__(self, cause: BaseException | str):
        if isinstance(cause, BaseException):
            detail = str(cause) or type(cause).__name__
        else:
            detail = cause
        super().__init__(f"{ANALYSIS_ERROR_PREFIX}{detail}")


class InvalidStateTransition(RuntimeError):
    """A LoadState move that the loader should never attempt."""
