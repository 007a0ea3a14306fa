"""clipmerge: HTTP service that merges remote video clips into one mp4."""

__version__ = "0.1.0"
