# virality/features/frame_features.py
from __future__ import annotations

import numpy as np

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def luminance(frame: np.ndarray) -> np.ndarray:
    """(H, W, 3+) RGB → (H, W) luma, ITU-R BT.601 weights."""
    return frame[..., :3].astype(np.float64) @ LUMA_WEIGHTS


def edge_intensity(frame: np.ndarray, divisor: float = 64.0) -> float:
    """
    Mean absolute luma difference between each pixel and its predecessor in
    scan order, divided by `divisor`, clamped to [0, 1].

    Cheap proxy for edge density, not a Sobel gradient. Row wrap-around
    pairs (last pixel of a row vs. first of the next) are included.
    """
    y = luminance(frame).ravel()
    if y.size < 2:
        return 0.0
    mean_diff = float(np.mean(np.abs(np.diff(y))))
    return float(np.clip(mean_diff / divisor, 0.0, 1.0))


def color_histogram(frame: np.ndarray, bucket_bits: int = 3) -> float:
    """
    Share of RGB buckets touched by the frame.

    Each channel keeps its top `bucket_bits` bits; distinct buckets are
    counted and divided by 2**(3*bucket_bits). Approximates colour
    diversity, not a histogram distance.
    """
    rgb = frame[..., :3].reshape(-1, 3)
    if rgb.size == 0:
        return 0.0

    shift = 8 - bucket_bits
    q = (rgb.astype(np.uint32) >> shift)
    codes = (q[:, 0] << (2 * bucket_bits)) | (q[:, 1] << bucket_bits) | q[:, 2]

    touched = np.unique(codes).size
    return float(np.clip(touched / float(2 ** (3 * bucket_bits)), 0.0, 1.0))
