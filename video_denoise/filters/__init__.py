"""Band-parallel frame filters."""

from video_denoise.filters.blob import BlobDetector, temporal_neighbors
from video_denoise.filters.interpolate import bilinear_sample, interpolate
from video_denoise.filters.median import median_band, median_filter
from video_denoise.filters.temporal import (
    TEMPORAL_VARIANTS,
    VARIANT_ADAPTIVE,
    VARIANT_DIRECT,
    VARIANT_MEDIAN,
    VARIANT_MOTION,
    TemporalCorrector,
)

__all__ = [
    "BlobDetector",
    "temporal_neighbors",
    "bilinear_sample",
    "interpolate",
    "median_band",
    "median_filter",
    "TEMPORAL_VARIANTS",
    "VARIANT_ADAPTIVE",
    "VARIANT_DIRECT",
    "VARIANT_MEDIAN",
    "VARIANT_MOTION",
    "TemporalCorrector",
]
