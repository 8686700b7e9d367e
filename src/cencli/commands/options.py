"""Options shared by several commands."""

from __future__ import annotations

import click

from cencli.core.param_types import ORG_ID


def org_id_option(help_text: str = "Organization ID to use (overrides the stored ID)"):
    """``--org-id/-o`` as a UUID, normalized to a string."""
    return click.option("--org-id", "-o", "org_id", type=ORG_ID, default=None, help=help_text)
