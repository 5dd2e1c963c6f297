"""
Formatting options carried by every tensor for an external printer, and the
process-wide defaults new root tensors start from.
"""

from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum, auto


class FloatMode(Enum):
    """Floating point notation."""
    DEFAULT = auto()
    FIXED = auto()
    SCIENTIFIC = auto()


@dataclass
class FormatConfig:
    """
    Options a printer reads from a tensor.

    Attributes:
        precision: Digits after the point, -1 for the printer's default
        max_elements: Elements shown before summarising, -1 for unlimited
        linewidth: Characters per line, -1 for unrestricted
        sign: Whether to always print the sign of positive values
        separator: Text between elements of the same axis
        float_mode: Floating point notation
    """
    precision: int = -1
    max_elements: int = -1
    linewidth: int = -1
    sign: bool = False
    separator: str = ", "
    float_mode: FloatMode = FloatMode.DEFAULT

    def __post_init__(self):
        for name in ('precision', 'max_elements', 'linewidth'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int, got {value!r}")
            if value < -1:
                raise ValueError(f"{name} must be -1 or non-negative, got {value}")
        if not isinstance(self.separator, str):
            raise TypeError(f"separator must be a str, got {self.separator!r}")
        if not isinstance(self.float_mode, FloatMode):
            raise TypeError(f"float_mode must be a FloatMode, got {self.float_mode!r}")

    def copy(self) -> 'FormatConfig':
        """Create an independent copy."""
        return replace(self)


_default_format = FormatConfig()


def get_default_format() -> FormatConfig:
    """Copy of the options given to newly constructed tensors."""
    return _default_format.copy()


def set_default_format(**options) -> FormatConfig:
    """
    Update the process-wide default options.

    Example:
        set_default_format(precision=3, float_mode=FloatMode.FIXED)
    """
    global _default_format
    _default_format = replace(_default_format, **options)
    return _default_format.copy()


def reset_default_format() -> None:
    """Restore the built-in default options."""
    global _default_format
    _default_format = FormatConfig()


@contextmanager
def format_options(**options):
    """Temporarily override the default options inside a ``with`` block."""
    global _default_format
    saved = _default_format
    _default_format = replace(saved, **options)
    try:
        yield _default_format.copy()
    finally:
        _default_format = saved
