"""Exception types raised by the EasyCount core."""

from __future__ import annotations


class EasyCountError(Exception):
    """Base class for all EasyCount errors."""


class StoreError(EasyCountError):
    """The counter store could not be read or written."""


class NotFoundError(EasyCountError, KeyError):
    """No counter or detail counter with the given id."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class ExportError(EasyCountError):
    """A CSV export could not be written."""
