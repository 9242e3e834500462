"""burnswap - burn a source token in exchange for a reserved target token."""

__version__ = "0.1.0"
