"""Research text to illustrated slide deck pipeline."""

__version__ = "0.1.0"
