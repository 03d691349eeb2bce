# virality/features/audio_features.py
from __future__ import annotations

import math

import numpy as np
from scipy.stats import entropy


def magnitude_spectrum(samples: np.ndarray, fft_size: int = 2048) -> np.ndarray:
    """
    Mean Hann-windowed magnitude spectrum over non-overlapping frames.

    Returns fft_size // 2 + 1 bins. Input shorter than one frame is
    zero-padded; an empty input yields an all-zero spectrum.
    """
    bins = fft_size // 2 + 1
    x = np.asarray(samples, dtype=np.float64).ravel()
    if x.size == 0:
        return np.zeros(bins, dtype=np.float64)

    n_frames = max(1, x.size // fft_size)
    need = n_frames * fft_size
    if x.size < need:
        x = np.pad(x, (0, need - x.size))
    frames = x[:need].reshape(n_frames, fft_size)

    win = np.hanning(fft_size)
    spec = np.abs(np.fft.rfft(frames * win, axis=1))
    return spec.mean(axis=0)


def spectral_entropy(spectrum: np.ndarray) -> float:
    """
    Shannon entropy (bits) of the normalized magnitude distribution,
    divided by log2(bin_count) and clamped to [0, 1].

    Silence (zero total magnitude) is defined as 0.
    """
    spec = np.asarray(spectrum, dtype=np.float64).ravel()
    if spec.size < 2:
        return 0.0

    total = float(np.sum(spec))
    if not math.isfinite(total) or total <= 0.0:
        return 0.0

    h = float(entropy(spec / total, base=2))
    return float(np.clip(h / math.log2(spec.size), 0.0, 1.0))


def audio_intensity(samples: np.ndarray, divisor: float = 0.5) -> float:
    """RMS of raw samples divided by `divisor`, clamped to [0, 1]."""
    x = np.asarray(samples, dtype=np.float64).ravel()
    if x.size == 0:
        return 0.0
    rms = float(np.sqrt(np.mean(x * x)))
    return float(np.clip(rms / divisor, 0.0, 1.0))
