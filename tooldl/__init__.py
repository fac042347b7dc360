"""tooldl — keep locally installed developer tools up to date."""

__version__ = "0.1.0"
