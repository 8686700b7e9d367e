"""How much status text a command writes to stderr.

Data on stdout is never affected; the level only gates the human-facing lines
printed through :class:`~cencli.core.output.strategy.OutputStrategy`.
"""

from enum import IntEnum


class Verbosity(IntEnum):
    """Stderr verbosity, compared with ``>=``.

    ``QUIET`` (``--quiet``) keeps stderr down to error blocks. ``NORMAL``, the
    default, adds warnings and the response status line.
    ``DEBUG`` (``--debug``) also lets diagnostic messages through.
    """

    QUIET = 0
    NORMAL = 1
    DEBUG = 2

    @classmethod
    def from_flags(
        cls,
        quiet: bool = False,
        debug: bool = False,
    ) -> "Verbosity":
        """Create Verbosity from CLI flags.

        Parameters
        ----------
        quiet : bool
            Whether --quiet is set
        debug : bool
            Whether --debug is set; wins over --quiet

        Returns
        -------
        Verbosity
            Corresponding verbosity level
        """
        if debug:
            return cls.DEBUG
        if quiet:
            return cls.QUIET
        return cls.NORMAL
