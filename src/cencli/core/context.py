"""Shared state for one CLI invocation.

The root group creates a :class:`Context` and stores it in ``ctx.obj``; every
command receives it through :data:`pass_context`. It owns the loaded
configuration, the resolved output settings and lazily built services.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, TypeVar

import click
import httpx

from cencli.core.command import explicit_flags
from cencli.core.config import CliConfig, ConfigManager, CredentialStore, TemplateEntity
from cencli.core.constants import OUTPUT_FORMAT_FLAG, STREAMING_FLAG, EnvVars
from cencli.core.errors import CencliError
from cencli.core.output.formats import OutputFormat, OutputType
from cencli.core.output.renderers import print_by_format, write_ndjson_item
from cencli.core.output.resolver import (
    resolve_output_format,
    validate_output_format,
    validate_streaming_mode,
)
from cencli.core.output.strategy import OutputStrategy
from cencli.core.output.templates import TemplateRenderer
from cencli.core.output.verbosity import Verbosity
from cencli.core.progress_display import progress_reporting
from cencli.core.timeouts import Deadline
from cencli.services.aggregate_service import AggregateService
from cencli.services.api import CensysClient, ResponseMeta
from cencli.services.credits_service import CreditsService
from cencli.services.organizations_service import OrganizationsService
from cencli.services.search_service import SearchService
from cencli.services.spinner import spinner_enabled
from cencli.services.streaming import ChannelEmitter, streaming_output
from cencli.services.view_service import ViewService
from cencli_logging import (
    CommandLoggerAdapter,
    configure_logger,
    get_command_logger,
    get_log_file_path,
)

T = TypeVar("T")


class Context:
    """CLI context object for sharing state between commands.

    Parameters
    ----------
    data_dir : Path | None
        Data directory; defaults to ``CENCLI_DATA_DIR`` or ``~/.config/cencli``
    transport : httpx.BaseTransport | None
        HTTP transport for the API client, replaced in tests
    """

    def __init__(
        self,
        data_dir: Path | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.data_dir = data_dir
        self.transport = transport
        self.loaded_config: CliConfig | None = None
        self.output_format: OutputFormat | None = None
        self.streaming: bool = False
        self.command_name: str = ""
        self.deadline: Deadline = Deadline.none()

        self._config_manager: ConfigManager | None = None
        self._credentials: CredentialStore | None = None
        self._output: OutputStrategy | None = None
        self._client: CensysClient | None = None

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager(self.data_dir)
        return self._config_manager

    @property
    def credentials(self) -> CredentialStore:
        if self._credentials is None:
            self._credentials = CredentialStore(self.config_manager.data_dir)
        return self._credentials

    @property
    def config(self) -> CliConfig:
        """The loaded configuration, loading it on first access."""
        if self.loaded_config is None:
            self.loaded_config = self.config_manager.load()
        return self.loaded_config

    @property
    def output(self) -> OutputStrategy:
        """Get output strategy singleton instance.

        Returns
        -------
        OutputStrategy
            Output strategy configured from ``--quiet``, ``--debug`` and
            ``--no-color``
        """
        if self._output is None:
            config = self.config
            verbosity = Verbosity.from_flags(config.quiet, config.debug)
            colored = False if config.no_color else None
            self._output = OutputStrategy(verbosity=verbosity, colored=colored)
        return self._output

    @property
    def colored(self) -> bool:
        """Whether data written to stdout is colorized."""
        if self.config.no_color or os.environ.get(EnvVars.NO_COLOR):
            return False
        return sys.stdout.isatty()

    # Services

    @property
    def client(self) -> CensysClient:
        """API client built from the stored credentials.

        Raises
        ------
        ClientNotConfiguredError
            If no personal access token is configured
        """
        if self._client is None:
            config = self.config
            self._client = CensysClient(
                token=self.credentials.token,
                org_id=self.credentials.org_id,
                base_url=config.api_url,
                retry=config.retry,
                http_timeout=config.http_timeout,
                transport=self.transport,
            )
        return self._client

    @property
    def search_service(self) -> SearchService:
        return SearchService(self.client, self.deadline)

    @property
    def view_service(self) -> ViewService:
        return ViewService(self.client, self.deadline)

    @property
    def credits_service(self) -> CreditsService:
        return CreditsService(self.client, self.deadline)

    @property
    def aggregate_service(self) -> AggregateService:
        return AggregateService(self.client, self.deadline)

    @property
    def organizations_service(self) -> OrganizationsService:
        return OrganizationsService(self.client, self.deadline)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # Invocation lifecycle

    def configure_logging(self) -> None:
        """Log to the cache file, and to stderr at DEBUG with ``--debug``."""
        debug = self.loaded_config is not None and self.loaded_config.debug
        configure_logger(
            level="DEBUG" if debug else None,
            to_console=debug,
            log_file=get_log_file_path("cli"),
        )

    def prepare_invocation(self, click_ctx: click.Context, command: Any) -> None:
        """Resolve and validate the output settings of the running command.

        Explicit persistent flags are applied over the configuration, then the
        output format is resolved from the persisted preference, the command's
        default output type and ``--output-format``. Runs before any progress
        or streaming state exists.

        Raises
        ------
        InvalidFormatError, UnsupportedFormatError
            If the resolved format is unknown or not renderable by the command
        StreamingConflictError, StreamingNotSupportedError
            If ``--streaming`` cannot be honoured
        """
        config = self.config
        flags = explicit_flags(click_ctx)
        was_debug = config.debug
        config.apply_flags(flags)
        self._output = None
        if config.debug and not was_debug:
            self.configure_logging()

        format_explicit = OUTPUT_FORMAT_FLAG in flags
        value = resolve_output_format(
            config.output_format.value,
            command.scoped_output_type(),
            flags.get(OUTPUT_FORMAT_FLAG),
            format_explicit,
        )
        validate_output_format(value, command.supported_output_types)
        validate_streaming_mode(
            config.streaming,
            STREAMING_FLAG in flags,
            format_explicit,
            command.supports_streaming,
        )

        self.output_format = OutputFormat(value)
        self.streaming = config.streaming and command.supports_streaming
        if self.streaming:
            self.output_format = OutputFormat.NDJSON
        self.command_name = click_ctx.command_path
        self.deadline = Deadline(config.timeout)
        self.logger(click_ctx.info_name or "").debug(
            "Resolved output",
            extra={
                "fields": {
                    "format": self.output_format.value,
                    "streaming": self.streaming,
                    "explicit": sorted(flags),
                },
            },
        )

    def logger(self, cmd: str) -> CommandLoggerAdapter:
        """Logger stamped with the command name."""
        return get_command_logger(f"cencli.commands.{cmd or 'root'}", cmd or "root")

    def with_progress(
        self,
        logger: logging.Logger | logging.LoggerAdapter,
        message: str,
        fn: Callable[[], T],
    ) -> T:
        """Run ``fn`` with a progress publisher bound.

        The spinner shows ``message`` until the first progress event. Progress
        is stopped on every exit path, including errors.
        """
        config = self.config
        enabled = spinner_enabled(config.no_spinner, config.quiet)
        with progress_reporting(logger, message, enabled):
            return fn()

    @contextlib.contextmanager
    def with_streaming_output(
        self,
        logger: logging.Logger | logging.LoggerAdapter,
    ) -> Iterator[ChannelEmitter | None]:
        """Stream NDJSON records for the block when streaming is active."""
        with streaming_output(
            self.streaming,
            write_ndjson_item,
            logger,
            colored=self.colored,
        ) as emitter:
            yield emitter

    # Rendering

    def print_data(
        self,
        data: Any,
        short: Callable[[bool], str] | None = None,
        template_entity: TemplateEntity | None = None,
    ) -> None:
        """Render command data to stdout in the resolved format.

        Does nothing when streaming, since records were already written.

        Parameters
        ----------
        data : Any
            Command result
        short : Callable[[bool], str] | None
            Renders the short form; receives whether to colorize
        template_entity : TemplateEntity | None
            Template used for ``--output-format template``. Lists are rendered
            item by item unless the entity is the search result template.
        """
        if self.streaming:
            return
        output_format = self.output_format or self.config.output_format
        colored = self.colored

        if output_format.output_type is OutputType.SHORT:
            if short is None:
                msg = "this command has no short output"
                raise CencliError(msg)
            text = short(colored)
            if text:
                click.echo(text)
            return

        if output_format.output_type is OutputType.TEMPLATE:
            if template_entity is None:
                msg = "this command has no template output"
                raise CencliError(msg)
            renderer = TemplateRenderer(self.config, colored)
            if isinstance(data, list) and template_entity is not TemplateEntity.SEARCH_RESULT:
                parts = [renderer.render(template_entity, item) for item in data]
                click.echo("\n".join(part.rstrip("\n") for part in parts))
            else:
                click.echo(renderer.render(template_entity, data).rstrip("\n"))
            return

        print_by_format(data, output_format, colored)

    def print_response_meta(self, meta: ResponseMeta | None) -> None:
        """Show the status line of the last response on stderr.

        The request line and kept headers are added at DEBUG verbosity.
        """
        if meta is None:
            return
        output = self.output
        output.debug(f"{meta.method} {meta.url}")
        output.detail(meta.status_line())
        for name, value in sorted(meta.headers.items()):
            output.debug(f"    {name}: {value}")

    def print_partial_error(self, error: CencliError | None) -> None:
        """Report a partial-data error after the data was printed."""
        if error is None:
            return
        self.output.error(error.title, error.message)


# Create a custom pass decorator for our Context class
# This allows any command to use @pass_context to automatically receive the context
pass_context = click.make_pass_decorator(Context, ensure=True)
