"""Tests for handle_exceptions."""

import click
import pytest

from cencli.core.constants import ExitCode
from cencli.core.decorators import handle_exceptions
from cencli.core.errors import (
    CencliError,
    DeadlineExceededError,
    InvalidConfigError,
    NoOrgIDError,
)
from cencli.services.api import ClientNotConfiguredError, UnauthorizedError


def _command(error: BaseException) -> click.Command:
    @click.command()
    @handle_exceptions
    def failing():
        raise error

    return failing


@pytest.mark.unit
class TestHandleExceptions:
    """Tests for error reporting and exit codes."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (CencliError("boom"), ExitCode.GENERAL_ERROR),
            (NoOrgIDError(), ExitCode.USAGE_ERROR),
            (InvalidConfigError("bad"), ExitCode.CONFIG_ERROR),
            (DeadlineExceededError(), ExitCode.TIMEOUT),
            (UnauthorizedError("Unauthorized (status code: 401)", status_code=401), ExitCode.AUTH_ERROR),
            (ClientNotConfiguredError(), ExitCode.AUTH_ERROR),
            (KeyboardInterrupt(), ExitCode.INTERRUPTED),
        ],
    )
    def test_exit_codes(self, cli_runner, error, code):
        result = cli_runner.invoke(_command(error))

        assert result.exit_code == code

    def test_error_is_rendered_with_title(self, cli_runner):
        result = cli_runner.invoke(_command(InvalidConfigError("timeout: invalid")))

        assert result.stdout == ""
        assert result.stderr.startswith("[Invalid Configuration]\ntimeout: invalid\n")

    def test_usage_follows_usage_errors(self, cli_runner):
        result = cli_runner.invoke(_command(NoOrgIDError()))

        assert "[No Organization ID]" in result.stderr
        assert "Usage:" in result.stderr

    def test_unexpected_error_is_wrapped(self, cli_runner):
        result = cli_runner.invoke(_command(RuntimeError("kaput")))

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "[Unknown Error]\nkaput" in result.stderr
        assert "Re-run with --debug" in result.stderr

    def test_click_errors_pass_through(self, cli_runner):
        result = cli_runner.invoke(_command(click.BadParameter("nope")))

        assert result.exit_code == 2
        assert "Invalid value: nope" in result.stderr
