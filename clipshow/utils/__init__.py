"""Shared helpers"""

from .logger import JsonFormatter, configure_logging
from .validation import ConversionError, convert_string_to_float, file_extension

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "ConversionError",
    "convert_string_to_float",
    "file_extension",
]
