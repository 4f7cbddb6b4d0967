"""Errors raised by the conversion layer."""

from __future__ import annotations


class ConversionError(ValueError):
    """Wire input could not be decoded into a typed value.

    Attributes:
        reason: Human-readable description of what was wrong.
        field: Path of the offending field (``bundle``,
            ``transactions[2].hash``), or None for the payload root.
    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(f"{field}: {reason}" if field else reason)

    def within(self, segment: str) -> ConversionError:
        """Return a copy whose path is nested under *segment*.

        Index segments are written with brackets (``[0]``) and attach
        without a dot.
        """
        if self.field is None:
            path = segment
        elif self.field.startswith("["):
            path = f"{segment}{self.field}"
        else:
            path = f"{segment}.{self.field}"
        return ConversionError(self.reason, field=path)


class UnsupportedTypeError(LookupError):
    """No conversion rule is registered for a type in a given format."""
