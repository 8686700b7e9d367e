"""Command tree classes with persistent, scoped options.

Click options belong to a single command. The CLI needs options that are
accepted on every node of the tree (``censys -O json search`` and ``censys
search -O json`` alike), so persistent options declared on a group are copied to
every descendant as *inherited* clones when the descendant is attached.

Commands whose default output type is not DATA shadow the inherited
``--output-format`` with a local option carrying their fixed default. The
shadow lives on that node only; siblings keep the inherited option.

Each node also binds its output default in its :class:`FlagScope`, which is
what invocations resolve against. DATA nodes bind ``None``, standing for the
persisted preference, so they never see a shadowing ancestor's default.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import click
from click.core import ParameterSource

from cencli.core.constants import OUTPUT_FORMAT_FLAG, STREAMING_FLAG
from cencli.core.decorators import handle_exceptions
from cencli.core.output.formats import (
    FIXED_FORMATS,
    OutputFormat,
    OutputType,
    available_output_formats,
)
from cencli.core.output.scoping import FlagScope
from cencli.core.param_types import DURATION
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)

OUTPUT_FORMAT_DECLS = ("--output-format", "-O")


class ScopedOption(click.Option):
    """Option that can be inherited by descendant commands.

    Parameters
    ----------
    param_decls : Iterable[str]
        Option declarations, as for :class:`click.Option`
    persistent : bool
        Copy this option to every descendant command
    inherited : bool
        This instance is a copy received from an ancestor
    """

    def __init__(
        self,
        param_decls: Iterable[str] | None = None,
        *,
        persistent: bool = False,
        inherited: bool = False,
        **attrs: Any,
    ) -> None:
        self._decls = tuple(param_decls or ())
        self._attrs = dict(attrs)
        super().__init__(self._decls, **attrs)
        self.persistent = persistent
        self.inherited = inherited

    def inherit(self) -> ScopedOption:
        """Return an inherited copy of this option."""
        return ScopedOption(self._decls, persistent=True, inherited=True, **self._attrs)

    def with_default(self, default: Any) -> ScopedOption:
        """Return a local persistent copy with a different default."""
        attrs = {**self._attrs, "default": default, "show_default": True}
        return ScopedOption(self._decls, persistent=True, inherited=False, **attrs)


def _output_format_attrs(default: str | None) -> dict[str, Any]:
    return {
        "default": default,
        "show_default": default is not None,
        "metavar": "FORMAT",
        "help": f"Output format ({'|'.join(available_output_formats())})",
    }


def output_format_option(default: str | None = None) -> ScopedOption:
    """Build the ``--output-format/-O`` option."""
    return ScopedOption(
        OUTPUT_FORMAT_DECLS,
        persistent=True,
        **_output_format_attrs(default),
    )


def global_options(func):
    """Declare the persistent global flags on a group."""
    options = [
        click.option(
            "--timeout",
            cls=ScopedOption,
            persistent=True,
            type=DURATION,
            default=None,
            help="Timeout for the whole operation (e.g. 30s, 2m)",
        ),
        click.option(
            "--debug",
            cls=ScopedOption,
            persistent=True,
            is_flag=True,
            default=False,
            help="Enable debug logging on stderr",
        ),
        click.option(
            "--quiet",
            "-q",
            cls=ScopedOption,
            persistent=True,
            is_flag=True,
            default=False,
            help="Suppress non-essential output",
        ),
        click.option(
            "--no-spinner",
            cls=ScopedOption,
            persistent=True,
            is_flag=True,
            default=False,
            help="Disable the progress spinner",
        ),
        click.option(
            "--no-color",
            cls=ScopedOption,
            persistent=True,
            is_flag=True,
            default=False,
            help="Disable colored output",
        ),
        click.option(
            "--streaming",
            "-S",
            cls=ScopedOption,
            persistent=True,
            is_flag=True,
            default=False,
            help="Stream results as NDJSON while they are fetched",
        ),
        click.option(
            *OUTPUT_FORMAT_DECLS,
            cls=ScopedOption,
            persistent=True,
            **_output_format_attrs(None),
        ),
    ]
    for option in options:
        func = option(func)
    return func


class _ScopedNode:
    """Output-format declarations and scope shared by commands and groups."""

    default_output_type: OutputType
    supported_output_types: tuple[OutputType, ...]
    supports_streaming: bool
    scope: FlagScope
    parent_node: CencliGroup | None

    def _init_node(
        self,
        default_output_type: OutputType,
        supported_output_types: Iterable[OutputType] | None,
        supports_streaming: bool,
    ) -> None:
        self.default_output_type = default_output_type
        supported = tuple(supported_output_types or (default_output_type,))
        if default_output_type not in supported:
            supported = (default_output_type, *supported)
        self.supported_output_types = supported
        self.supports_streaming = supports_streaming
        self.scope = FlagScope(getattr(self, "name", "") or "")
        self.scope.bind(OUTPUT_FORMAT_FLAG, _scope_default(default_output_type))
        self.parent_node = None

    def scoped_output_type(self) -> OutputType:
        """Default output type as bound in this node's scope.

        A ``None`` binding stands for the persisted preference, i.e. DATA.
        """
        bound = self.scope.lookup(OUTPUT_FORMAT_FLAG)
        return OutputType.DATA if bound is None else OutputFormat(bound).output_type

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        rest = super().parse_args(ctx, args)  # type: ignore[misc]
        # Persistent values stay out of the callback signature
        persistent = ctx.meta.setdefault(_persistent_key(ctx), {})
        for param in self.params:  # type: ignore[attr-defined]
            if isinstance(param, ScopedOption) and param.persistent:
                if param.name in ctx.params:
                    persistent[param.name] = ctx.params.pop(param.name)
        return rest


def _scope_default(output_type: OutputType) -> str | None:
    if output_type is OutputType.DATA:
        return None
    return FIXED_FORMATS[output_type].value


def _persistent_key(ctx: click.Context) -> str:
    return f"cencli.persistent.{id(ctx)}"


class CencliCommand(_ScopedNode, click.Command):
    """Leaf command with output-format declarations.

    Parameters
    ----------
    default_output_type : OutputType
        Output type used when ``--output-format`` is not given
    supported_output_types : Iterable[OutputType] | None
        Output types the command can render; defaults to the default type
    supports_streaming : bool
        Whether ``--streaming`` is meaningful for the command
    """

    def __init__(
        self,
        *args: Any,
        default_output_type: OutputType = OutputType.DATA,
        supported_output_types: Iterable[OutputType] | None = None,
        supports_streaming: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._init_node(default_output_type, supported_output_types, supports_streaming)

    def invoke(self, ctx: click.Context) -> Any:
        handle_exceptions(prepare_invocation)(ctx, self)
        return super().invoke(ctx)


class CencliGroup(_ScopedNode, click.Group):
    """Group whose children inherit its persistent options."""

    command_class = CencliCommand

    def __init__(
        self,
        *args: Any,
        default_output_type: OutputType = OutputType.SHORT,
        supported_output_types: Iterable[OutputType] | None = None,
        supports_streaming: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._init_node(default_output_type, supported_output_types, supports_streaming)

    def add_command(self, cmd: click.Command, name: str | None = None) -> None:
        super().add_command(cmd, name)
        if isinstance(cmd, _ScopedNode):
            attach_node(cmd, self)


CencliGroup.group_class = CencliGroup


def attach_node(node: _ScopedNode, parent: CencliGroup) -> None:
    """Attach ``node`` below ``parent`` and refresh the subtree.

    Inherited options are re-propagated and output defaults re-applied for the
    whole subtree, so attaching nodes in any order converges to the same tree.
    """
    node.parent_node = parent
    node.scope.attach(parent.scope)
    propagate_persistent_options(node)
    apply_output_defaults(node)


def iter_children(node: Any) -> Iterator[Any]:
    """Yield the scoped direct children of a node."""
    commands = getattr(node, "commands", None) or {}
    for child in commands.values():
        if isinstance(child, _ScopedNode):
            yield child


def find_param(node: click.Command, name: str) -> click.Parameter | None:
    """Return the parameter called ``name`` declared on ``node``."""
    for param in node.params:
        if param.name == name:
            return param
    return None


def _replace_param(node: click.Command, name: str, new: click.Parameter) -> None:
    for index, param in enumerate(node.params):
        if param.name == name:
            node.params[index] = new
            return
    node.params.append(new)


def propagate_persistent_options(node: Any) -> None:
    """Copy the parent's persistent options onto ``node`` and its subtree.

    Inherited copies are refreshed; options declared locally on ``node`` take
    precedence and are left untouched.
    """
    parent = node.parent_node
    if parent is not None:
        for option in parent.params:
            if not (isinstance(option, ScopedOption) and option.persistent):
                continue
            existing = find_param(node, option.name)
            if existing is not None and not getattr(existing, "inherited", False):
                continue
            _replace_param(node, option.name, option.inherit())
    for child in iter_children(node):
        propagate_persistent_options(child)


def apply_output_defaults(node: Any) -> None:
    """Shadow ``--output-format`` on non-DATA nodes, recursively.

    For each node whose default output type is SHORT or TEMPLATE and which
    does not yet declare ``--output-format`` locally, a local option with the
    fixed default replaces the inherited copy and the default is bound in the
    node's scope. Parents and siblings are never modified.
    """
    _apply_output_default(node)
    for child in iter_children(node):
        apply_output_defaults(child)


def _apply_output_default(node: Any) -> None:
    if node.default_output_type is OutputType.DATA:
        # A DATA child of a shadowed group must not advertise the group's default
        inherited = find_param(node, OUTPUT_FORMAT_FLAG)
        if getattr(inherited, "inherited", False) and inherited.default is not None:
            _replace_param(node, OUTPUT_FORMAT_FLAG, output_format_option().inherit())
        return
    fixed = FIXED_FORMATS[node.default_output_type].value

    existing = find_param(node, OUTPUT_FORMAT_FLAG)
    if existing is not None and not getattr(existing, "inherited", False):
        return

    node.scope.bind(OUTPUT_FORMAT_FLAG, fixed)
    if isinstance(existing, ScopedOption):
        shadow = existing.with_default(node.scope.lookup(OUTPUT_FORMAT_FLAG))
    else:
        shadow = output_format_option(node.scope.lookup(OUTPUT_FORMAT_FLAG))
    _replace_param(node, OUTPUT_FORMAT_FLAG, shadow)
    logger.debug(
        "Shadowed --output-format on %s with default %s",
        "/".join(node.scope.path()),
        fixed,
    )


def explicit_flags(ctx: click.Context) -> dict[str, Any]:
    """Collect persistent flags given on the command line for this invocation.

    The context chain is walked from the leaf towards the root; for each flag
    the nearest context where it was typed wins. A flag counts as given when
    the parser saw it, whatever its value.
    """
    found: dict[str, Any] = {}
    current: click.Context | None = ctx
    while current is not None:
        values = current.meta.get(_persistent_key(current), {})
        for name, value in values.items():
            if name in found:
                continue
            if current.get_parameter_source(name) is ParameterSource.COMMANDLINE:
                found[name] = value
        current = current.parent
    return found


def prepare_invocation(ctx: click.Context, command: _ScopedNode) -> None:
    """Resolve and validate output settings before a command runs."""
    from cencli.core.context import Context  # Local import to avoid cycle

    ctx.ensure_object(Context).prepare_invocation(ctx, command)


def show_group_help(ctx: click.Context) -> None:
    """Validate flags and print help for a group run without a subcommand."""
    handle_exceptions(prepare_invocation)(ctx, ctx.command)
    click.echo(ctx.get_help())


__all__ = [
    "OUTPUT_FORMAT_FLAG",
    "STREAMING_FLAG",
    "CencliCommand",
    "CencliGroup",
    "ScopedOption",
    "apply_output_defaults",
    "attach_node",
    "explicit_flags",
    "find_param",
    "global_options",
    "output_format_option",
    "prepare_invocation",
    "propagate_persistent_options",
    "show_group_help",
]
