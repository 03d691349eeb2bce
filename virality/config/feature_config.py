# virality/config/feature_config.py
from __future__ import annotations

from pydantic import BaseModel, Field


class FeatureConfig(BaseModel):
    """
    FeatureConfig（FROZEN per trained model）

    Sampling policy + normalization constants for media features.
    Changing any value here changes the meaning of the extracted vector,
    so the values are persisted with the model artifact.
    """

    # frame sampling
    frame_offset_ratio: float = Field(default=0.25, ge=0.0, le=1.0)
    frame_width: int = Field(default=320, gt=0)

    # visual features
    edge_divisor: float = Field(default=64.0, gt=0.0)
    color_bucket_bits: int = Field(default=3, ge=1, le=8)

    # audio features
    audio_sample_rate: int = Field(default=22050, gt=0)
    audio_window_seconds: float = Field(default=5.0, gt=0.0)
    fft_size: int = Field(default=2048, gt=1)
    intensity_divisor: float = Field(default=0.5, gt=0.0)

    # decoder
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    decode_timeout_seconds: float = 60.0

    # batch extraction
    max_workers: int | None = None

    @property
    def color_bucket_count(self) -> int:
        return 2 ** (3 * self.color_bucket_bits)
