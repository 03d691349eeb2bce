import math

import numpy as np
import pytest

from virality.features.audio_features import (
    audio_intensity,
    magnitude_spectrum,
    spectral_entropy,
)


def test_silence_entropy_is_exactly_zero():
    spectrum = magnitude_spectrum(np.zeros(22050, dtype=np.float32), 2048)

    value = spectral_entropy(spectrum)

    assert value == 0.0
    assert not math.isnan(value)


def test_empty_samples_give_zero_spectrum():
    spectrum = magnitude_spectrum(np.zeros(0, dtype=np.float32), 2048)

    assert spectrum.shape == (1025,)
    assert not spectrum.any()


def test_flat_spectrum_has_max_entropy():
    assert spectral_entropy(np.ones(1025)) == pytest.approx(1.0)


def test_single_bin_spectrum_has_zero_entropy():
    spec = np.zeros(1025)
    spec[10] = 3.0
    assert spectral_entropy(spec) == pytest.approx(0.0)


def test_pure_tone_is_less_complex_than_noise():
    sr = 22050
    t = np.arange(sr * 2) / sr
    tone = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    noise = np.random.default_rng(0).uniform(-0.5, 0.5, size=t.size)

    h_tone = spectral_entropy(magnitude_spectrum(tone, 2048))
    h_noise = spectral_entropy(magnitude_spectrum(noise, 2048))

    assert 0.0 <= h_tone < h_noise <= 1.0


def test_audio_intensity_rms():
    samples = np.full(1000, 0.25)
    assert audio_intensity(samples, divisor=0.5) == pytest.approx(0.5)


def test_audio_intensity_clamped_and_empty():
    assert audio_intensity(np.ones(10), divisor=0.5) == 1.0
    assert audio_intensity(np.zeros(0)) == 0.0
