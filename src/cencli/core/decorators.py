"""Custom Click decorators for common CLI patterns."""

import functools
import traceback
from collections.abc import Callable
from typing import Any, TypeVar

import click

from cencli.core.constants import ExitCode
from cencli.core.errors import (
    CencliError,
    DeadlineExceededError,
    InvalidConfigError,
    OperationInterruptedError,
    wrap_error,
)
from cencli.core.output.strategy import OutputStrategy
from cencli.core.output.verbosity import Verbosity
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _exit_code_for(error: CencliError) -> int:
    from cencli.services.api.errors import ClientNotConfiguredError, UnauthorizedError

    if isinstance(error, OperationInterruptedError):
        return ExitCode.INTERRUPTED
    if isinstance(error, DeadlineExceededError):
        return ExitCode.TIMEOUT
    if isinstance(error, (UnauthorizedError, ClientNotConfiguredError)):
        return ExitCode.AUTH_ERROR
    if isinstance(error, InvalidConfigError):
        return ExitCode.CONFIG_ERROR
    if error.should_print_usage:
        return ExitCode.USAGE_ERROR
    return ExitCode.GENERAL_ERROR


def report_error(ctx: click.Context, error: CencliError) -> int:
    """Print ``error`` on stderr and return its exit code.

    The error is rendered as ``[Title]`` followed by the message; usage of the
    offending command follows when the error asks for it.
    """
    output = OutputStrategy.from_click_context(ctx)
    output.error(error.title, error.message)
    if error.should_print_usage:
        output.usage(ctx.get_usage())
    return _exit_code_for(error)


def handle_exceptions(func: F) -> F:
    """Handle exceptions and convert to appropriate exit codes.

    Parameters
    ----------
    func : Callable
        Function to wrap

    Returns
    -------
    Callable
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            ctx = click.get_current_context()
            ctx.exit(report_error(ctx, OperationInterruptedError()))
        except (click.exceptions.Exit, click.exceptions.Abort, click.ClickException):
            # Click's own exit and usage mechanisms
            raise
        except CencliError as e:
            ctx = click.get_current_context()
            logger.debug("Command failed: %s: %s", e.title, e.message)
            ctx.exit(report_error(ctx, e))
        except Exception as e:
            ctx = click.get_current_context()
            logger.debug("Unexpected error", exc_info=True)
            code = report_error(ctx, wrap_error(e))
            output = OutputStrategy.from_click_context(ctx)
            if output.verbosity >= Verbosity.DEBUG:
                output.plain(traceback.format_exc())
            else:
                output.info("Re-run with --debug for full traceback")
            ctx.exit(code)

    return wrapper  # type: ignore[return-value]

