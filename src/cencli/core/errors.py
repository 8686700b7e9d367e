"""Error taxonomy for the cencli CLI.

Every error that reaches the user is a :class:`CencliError`: it carries a short
canonical ``title`` and the detail message, and says whether the offending
command's usage should be printed after it.
"""

from __future__ import annotations


class CencliError(Exception):
    """Base class for errors shown to the user.

    Parameters
    ----------
    message : str
        Error detail, unstyled
    """

    title = "Unknown Error"
    should_print_usage = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class WrappedError(CencliError):
    """A foreign exception presented as a :class:`CencliError`."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause) or cause.__class__.__name__)
        self.__cause__ = cause


def wrap_error(exc: BaseException | None) -> CencliError | None:
    """Convert any exception into a :class:`CencliError`.

    Errors that already are :class:`CencliError` instances are returned as-is
    so they are never wrapped twice.
    """
    if exc is None:
        return None
    if isinstance(exc, CencliError):
        return exc
    return WrappedError(exc)


class PartialError(CencliError):
    """An error raised after some data was already retrieved.

    Parameters
    ----------
    cause : CencliError
        The error that interrupted retrieval
    """

    PARTIAL_NOTE = "some data was successfully retrieved before this error occurred"

    def __init__(self, cause: CencliError) -> None:
        super().__init__(f"{cause.message}\n\n{self.PARTIAL_NOTE}")
        self.cause = cause
        self.__cause__ = cause

    @property
    def title(self) -> str:  # type: ignore[override]
        return f"{self.cause.title} (partial data)"

    @property
    def should_print_usage(self) -> bool:  # type: ignore[override]
        return self.cause.should_print_usage


def to_partial_error(exc: BaseException | None) -> PartialError | None:
    """Wrap an error as partial; ``None`` stays ``None``."""
    err = wrap_error(exc)
    if err is None:
        return None
    if isinstance(err, PartialError):
        return err
    return PartialError(err)


class UsageError(CencliError):
    """Invalid flags, missing arguments and similar mistakes."""

    title = "Usage Error"
    should_print_usage = True


class OperationInterruptedError(CencliError):
    """The user interrupted the operation before it completed."""

    title = "Interrupted"

    def __init__(self, message: str = "") -> None:
        super().__init__(
            message or "the operation's context was cancelled before it completed",
        )


class DeadlineExceededError(CencliError):
    """The operation ran past its ``--timeout``."""

    title = "Timeout"

    def __init__(self, message: str = "") -> None:
        super().__init__(
            message or "the operation timed out before it could be completed",
        )


class InvalidConfigError(CencliError):
    """A configuration value could not be parsed or validated."""

    title = "Invalid Configuration"


class NoOrgIDError(CencliError):
    """An organization-scoped command ran without an organization id."""

    title = "No Organization ID"
    should_print_usage = True

    def __init__(self) -> None:
        super().__init__(
            "no organization ID configured. Use --org-id or run "
            "'censys config org-id <org-id>' to set a default",
        )


class InvalidFormatError(CencliError):
    """The requested output format is not a known format.

    Parameters
    ----------
    value : str
        Format string as given by the user
    available : list[str]
        Every globally available format string
    """

    title = "Invalid Output Format"
    should_print_usage = True

    def __init__(self, value: str, available: list[str]) -> None:
        super().__init__(
            f"invalid output format: {value!r}; available formats: "
            f"{', '.join(available)}",
        )
        self.value = value
        self.available = list(available)


class UnsupportedFormatError(CencliError):
    """The output format is known but the command cannot render it.

    Parameters
    ----------
    value : str
        Format string as given by the user
    supported : list[str]
        Format strings reachable from the command's supported output types
    """

    title = "Unsupported Output Format"
    should_print_usage = True

    def __init__(self, value: str, supported: list[str]) -> None:
        super().__init__(
            f"output format {value!r} is not supported by this command; "
            f"supported formats: {', '.join(supported)}",
        )
        self.value = value
        self.supported = list(supported)


class StreamingConflictError(CencliError):
    """``--streaming`` combined with an explicit ``--output-format``."""

    title = "Conflicting Flags"
    should_print_usage = True

    def __init__(self) -> None:
        super().__init__(
            "--streaming and --output-format cannot be used together; "
            "streaming mode uses NDJSON output",
        )


class StreamingNotSupportedError(CencliError):
    """``--streaming`` given to a command that cannot stream."""

    title = "Streaming Not Supported"
    should_print_usage = True

    def __init__(self) -> None:
        super().__init__("this command does not support streaming output")


class TemplateError(CencliError):
    """A template could not be loaded or rendered."""

    title = "Template Error"


class ConflictingFlagsError(UsageError):
    """Two mutually exclusive flags were given together."""

    title = "Conflicting Flags"

    def __init__(self, first: str, second: str) -> None:
        super().__init__(f"--{first} and --{second} cannot be used together")
