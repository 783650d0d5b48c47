"""tagscan: precise detection of Google tracking and advertising code."""

__version__ = "2.0.0"
