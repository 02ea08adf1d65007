"""Website content crawler producing migration-ready page and media exports."""

__version__ = "0.1.0"
