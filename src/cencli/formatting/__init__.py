"""Human-readable renderings for ``--output-format short``."""
