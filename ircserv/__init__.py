"""A small IRC server with channels, operators, modes and a built-in bot."""

__version__ = "0.1.0"