"""Per-topic clip selection."""

from .segment_selector import SegmentSelector

__all__ = ["SegmentSelector"]
