"""Template rendering for ``--output-format template``.

Templates are Jinja2 files in the data directory's ``templates`` folder, one
per entity. Defaults are copied there the first time they are needed; users
point ``templates.<entity>.path`` at their own file to customise the output.
"""

from __future__ import annotations

import importlib.resources
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import click
from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError as JinjaTemplateError,
    select_autoescape,
)

from cencli.core.config import CliConfig, TemplateEntity
from cencli.core.constants import DEFAULT_APP_URL
from cencli.core.errors import TemplateError
from cencli.core.output.renderers import to_serializable
from cencli.core.paths import DataPaths
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)

DEFAULT_TEMPLATES_PACKAGE = "cencli.core.output"
DEFAULT_TEMPLATES_DIR = "default_templates"

_LOOKUP_PATHS = {
    "host": "hosts",
    "certificate": "certificates",
    "webproperty": "webproperties",
}


def pluck(items: Any, key: str) -> list[Any]:
    """Collect ``key`` from every mapping in ``items``, dropping empty values."""
    if not isinstance(items, Iterable) or isinstance(items, (str, bytes, Mapping)):
        return []
    result = []
    for item in items:
        value = item.get(key) if isinstance(item, Mapping) else getattr(item, key, None)
        if value:
            result.append(value)
    return result


def join_nonempty(items: Any, separator: str = ", ") -> str:
    """Join the non-empty string forms of ``items``."""
    if items is None:
        return ""
    if isinstance(items, (str, bytes)):
        return str(items)
    return separator.join(str(item) for item in items if item)


def censys_link(operation: str, asset_id: Any) -> str:
    """Platform lookup URL for a host, certificate or web property."""
    path = _LOOKUP_PATHS.get(str(operation))
    if path is None or not asset_id:
        return ""
    return f"{DEFAULT_APP_URL}/{path}/{asset_id}"


class TemplateRenderer:
    """Renders entities through their configured templates.

    Parameters
    ----------
    config : CliConfig
        Supplies configured template paths and the data directory
    colored : bool
        Whether the ``color`` and ``location`` filters emit ANSI styles
    """

    def __init__(self, config: CliConfig, colored: bool = False) -> None:
        self.config = config
        self.colored = colored
        self.templates_dir = DataPaths.templates_dir(config.data_dir)

    def _color(self, value: Any, style: str = "bold") -> str:
        text = "" if value is None else str(value)
        if not self.colored or not text:
            return text
        if style == "bold":
            return click.style(text, bold=True)
        if style == "dim":
            return click.style(text, dim=True)
        return click.style(text, fg=style)

    def _location(self, value: Any) -> str:
        if not isinstance(value, Mapping):
            return ""
        city = value.get("city") or ""
        province = value.get("province") or ""
        country = value.get("country") or ""
        code = value.get("country_code") or ""
        parts = []
        if city:
            parts.append(self._color(city, "blue"))
        if province and province.lower() != city.lower():
            parts.append(self._color(province, "blue"))
        if country:
            parts.append(self._color(country, "blue"))
        if code:
            parts.append(f"({self._color(code, 'blue')})")
        return ", ".join(parts)

    def environment(self, search_dir: Path) -> Environment:
        """Build the Jinja2 environment with the helper filters."""
        env = Environment(
            loader=FileSystemLoader(search_dir),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["pluck"] = pluck
        env.filters["join_nonempty"] = join_nonempty
        env.filters["location"] = self._location
        env.filters["color"] = self._color
        env.globals["censys_link"] = censys_link
        return env

    def ensure_default(self, entity: TemplateEntity) -> Path:
        """Copy the default template for ``entity`` into the data directory."""
        target = self.templates_dir / f"{entity.value}.j2"
        if target.exists():
            return target
        source = importlib.resources.files(DEFAULT_TEMPLATES_PACKAGE).joinpath(
            DEFAULT_TEMPLATES_DIR,
            f"{entity.value}.j2",
        )
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source.read_text(encoding="utf-8"), encoding="utf-8")
        except OSError as e:
            msg = f"failed to write default template {target}: {e}"
            raise TemplateError(msg) from e
        logger.debug("Wrote default %s template to %s", entity.value, target)
        return target

    def template_path(self, entity: TemplateEntity) -> Path:
        """Configured template for ``entity``, else the default one.

        Raises
        ------
        TemplateError
            If a configured template file does not exist
        """
        configured = self.config.template_path(entity)
        if configured is None:
            return self.ensure_default(entity)
        if not configured.is_file():
            msg = (
                f"template for {entity.value} not found: {configured}; "
                f"fix templates.{entity.value}.path in your config"
            )
            raise TemplateError(msg)
        return configured

    def render(self, entity: TemplateEntity, data: Any) -> str:
        """Render ``data`` through the template for ``entity``.

        Raises
        ------
        TemplateError
            If the template cannot be loaded or rendering fails
        """
        path = self.template_path(entity)
        env = self.environment(path.parent)
        try:
            template = env.get_template(path.name)
            return template.render(data=to_serializable(data))
        except JinjaTemplateError as e:
            msg = f"failed to render {path}: {e}"
            raise TemplateError(msg) from e
