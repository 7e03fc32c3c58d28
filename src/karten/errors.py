"""Exception hierarchy shared by all karten modules."""
from __future__ import annotations

from typing import Optional, Sequence


class KartenError(Exception):
    """Base class for every error raised by karten."""


class MarkupError(KartenError):
    """A deck document could not be turned into a deck."""


class MissingDeckNameError(MarkupError):
    def __init__(self) -> None:
        super().__init__(
            'the deck has no name attribute set like <deck name="example">...</deck>'
        )


class UnexpectedTagError(MarkupError):
    """A tag showed up where a different one was required."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected {expected}, but got {actual}")


class InvalidAttributeValueError(MarkupError):
    """An enumerated attribute carries a value outside its allowed set."""

    def __init__(self, tag: str, attribute: str, value: str, allowed: Sequence[str]) -> None:
        self.tag = tag
        self.attribute = attribute
        self.value = value
        self.allowed = tuple(allowed)
        super().__init__(
            f'invalid value for attribute: <{tag} ... {attribute}="{value}" ... />, '
            f"allowed values are {list(self.allowed)}"
        )


class MarkupParseError(MarkupError):
    """The document is not well-formed XML."""

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        message = "couldn't parse the xml file"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class GeometryError(KartenError):
    """Invalid sheet geometry input."""


class AspectRatioError(GeometryError):
    """
    Raised when an aspect ratio string cannot be parsed.

    ``component`` names the part that failed: ``"width"`` or ``"height"`` for
    the ``W/H`` form, ``"ratio"`` for a single decimal and ``"parts"`` when the
    string has more than two ``/``-separated parts.
    """

    def __init__(self, text: str, component: str) -> None:
        self.text = text
        self.component = component
        if component == "parts":
            message = f"cannot parse an aspect ratio from this: {text}"
        elif component == "ratio":
            message = f"invalid aspect ratio: {text} (could not parse as float)"
        else:
            message = f"invalid aspect ratio: {text} (could not parse {component})"
        super().__init__(message)


class RenderError(KartenError):
    """Drawing a sheet or card failed."""


class PoolExhaustionError(KartenError):
    """The device pool could not hand out a device."""


class DeviceCreationError(PoolExhaustionError):
    """A new rendering device could not be constructed."""


class ExportError(KartenError):
    """An exporter could not encode or store an artifact."""


class HostError(KartenError):
    """The Tabletop Simulator host rejected or could not receive a command."""


class ConfigError(KartenError):
    """Invalid configuration value or missing input/output location."""
