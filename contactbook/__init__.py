"""contactbook — address-book screen over a local contacts store."""

__version__ = "0.1.0"
