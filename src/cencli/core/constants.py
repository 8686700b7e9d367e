"""Constants for the cencli CLI."""


class ExitCode:
    """Exit codes for CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    CONFIG_ERROR = 3
    AUTH_ERROR = 4
    INTERRUPTED = 130
    TIMEOUT = 124


class Icons:
    """Unicode icons for CLI output.

    Icons are reserved for errors, headers and status indicators; general
    output uses colors instead.
    """

    WARNING = "⚠️"
    KEY = "🔑"


class EnvVars:
    """Environment variable names."""

    PREFIX = "CENCLI_"
    DATA_DIR = "CENCLI_DATA_DIR"
    PAT = "CENCLI_PAT"
    ORG_ID = "CENCLI_ORG_ID"
    NO_COLOR = "NO_COLOR"


# Reserved persistent flag names
OUTPUT_FORMAT_FLAG = "output_format"
STREAMING_FLAG = "streaming"

DEFAULT_API_URL = "https://api.platform.censys.io"
DEFAULT_APP_URL = "https://platform.censys.io"

# Maximum number of assets accepted per lookup request
MAX_HOSTS_PER_REQUEST = 100
MAX_CERTIFICATES_PER_REQUEST = 1000
MAX_WEB_PROPERTIES_PER_REQUEST = 100

STREAM_BUFFER_SIZE = 1
PROGRESS_BUFFER_SIZE = 0

SUPPORTED_SHELLS = ("bash", "zsh", "fish")
