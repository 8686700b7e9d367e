"""Filesystem locations used by the cencli CLI."""

import os
from pathlib import Path

from cencli.core.constants import EnvVars


class DataPaths:
    """Standard paths inside the cencli data directory."""

    CONFIG_FILE = "config.yaml"
    CREDENTIALS_FILE = "credentials.yaml"
    TEMPLATES_DIR = "templates"

    @staticmethod
    def data_dir() -> Path:
        """Get the data directory (``$CENCLI_DATA_DIR`` or ``~/.config/cencli``)."""
        override = os.environ.get(EnvVars.DATA_DIR)
        if override:
            return Path(override).expanduser()
        config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        return Path(config_home) / "cencli"

    @classmethod
    def config_file(cls, data_dir: Path | None = None) -> Path:
        """Get the path of ``config.yaml``."""
        return (data_dir or cls.data_dir()) / cls.CONFIG_FILE

    @classmethod
    def credentials_file(cls, data_dir: Path | None = None) -> Path:
        """Get the path of ``credentials.yaml``."""
        return (data_dir or cls.data_dir()) / cls.CREDENTIALS_FILE

    @classmethod
    def templates_dir(cls, data_dir: Path | None = None) -> Path:
        """Get the directory holding the output templates."""
        return (data_dir or cls.data_dir()) / cls.TEMPLATES_DIR
