"""
Tiler Errors

Exceptions raised at internal seams. None of them escape to the host: the
component that owns the seam logs them and degrades to "leave the window
where it is".
"""


class TilerError(Exception):
    """Base class for tiler errors."""


class ConfigurationMissing(TilerError):
    """No layout configuration applies to a screen."""

    def __init__(self, screen_name: str):
        super().__init__(f"No layout configuration found for screen {screen_name}")
        self.screen_name = screen_name


class InvalidRegion(TilerError, ValueError):
    """A grid coordinate or region spec could not be parsed."""


class PersistenceUnavailable(TilerError):
    """The remembered-position store could not be read or written."""
