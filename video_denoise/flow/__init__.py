"""Optical flow fields for motion-compensated correction."""

from video_denoise.flow.fields import FlowFields, estimate_farneback

__all__ = ["FlowFields", "estimate_farneback"]
