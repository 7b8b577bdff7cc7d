"""Audio extraction, trimming and concatenation."""

from .clip_materializer import ClipMaterializer
from .concatenator import Concatenator, order_artifacts, playback_order
from .media import MediaToolkit

__all__ = [
    "ClipMaterializer",
    "Concatenator",
    "MediaToolkit",
    "order_artifacts",
    "playback_order",
]
