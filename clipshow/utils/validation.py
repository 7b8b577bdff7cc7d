"""
Value conversion and filename helpers for ClipShow.
"""

import logging
import os
import re
from typing import Union

logger = logging.getLogger(__name__)


NOT_AVAILABLE = "N/A"


class ConversionError(ValueError):
    """Raised when a value cannot be read as a number."""
    pass


def convert_string_to_float(value: Union[str, int, float, None]) -> float:
    """
    Convert a model-supplied value to a float.

    "N/A" maps to 0. Numbers pass through. Anything else that does not
    parse raises ConversionError.
    """
    if isinstance(value, bool):
        raise ConversionError(f"Cannot convert {value!r} to a number")

    if isinstance(value, (int, float)):
        return float(value)

    if value is None:
        raise ConversionError("Cannot convert None to a number")

    text = str(value).strip()
    if text == NOT_AVAILABLE:
        return 0.0

    try:
        number = float(text)
    except ValueError:
        raise ConversionError(f"Cannot convert {value!r} to a number")

    if number != number:  # NaN
        raise ConversionError(f"Cannot convert {value!r} to a number")

    return number


def file_extension(path: Union[str, os.PathLike]) -> str:
    """Return the extension of a path without the dot ("" when none)."""
    name = os.path.basename(os.fspath(path))
    if "." not in name:
        return ""
    extension = name.rsplit(".", 1)[1]
    if not re.match(r"^[A-Za-z0-9]+$", extension):
        logger.warning(f"Ignoring unusual file extension: {extension}")
        return ""
    return extension.lower()
