"""ClipShow - podcast episodes stitched from video clips and narrated transitions."""

__version__ = "1.0.0"
