# virality/features/feature_extractor.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from virality import logs
from virality.config.feature_config import FeatureConfig
from virality.features.audio_features import (
    audio_intensity,
    magnitude_spectrum,
    spectral_entropy,
)
from virality.features.feature_vector import FeatureVector
from virality.features.frame_features import color_histogram, edge_intensity
from virality.features.media_decoder import DecodedMedia, MediaDecoder
from virality.observability.instrumentation import Instrumentation, NoOpInstrumentation
from virality.pipeline.parallel import ParallelExecutor


@dataclass(frozen=True)
class ExtractionRequest:
    """One sample for batch extraction: raw bytes or a path, plus texts."""

    title: str
    description: str
    data: bytes | None = None
    path: Path | None = None


class FeatureExtractor:
    """
    FeatureExtractor（FINAL）

    Responsibility:
    - media bytes + title + description -> FeatureVector
    - owns the canonical formula set (see frame_features / audio_features)

    Contract:
    - deterministic for identical bytes and an identical FeatureConfig
    - decode failures raise MediaDecodeError; no partial vector is returned
    - no shared mutable state: one instance may serve concurrent callers
    """

    def __init__(
            self,
            cfg: FeatureConfig | None = None,
            decoder: MediaDecoder | None = None,
            inst: Instrumentation | None = None,
    ):
        self.cfg = cfg or FeatureConfig()
        self.decoder = decoder or MediaDecoder(self.cfg)
        self.inst = inst if inst is not None else NoOpInstrumentation()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def extract(self, video_bytes: bytes, title: str, description: str) -> FeatureVector:
        with self.inst.timer("feature_extract.decode"):
            decoded = self.decoder.decode(video_bytes)
        return self.compute(decoded, title, description)

    def extract_path(self, path: Path | str, title: str, description: str) -> FeatureVector:
        with self.inst.timer("feature_extract.decode"):
            decoded = self.decoder.decode_path(Path(path))
        return self.compute(decoded, title, description)

    def extract_many(self, requests: Sequence[ExtractionRequest]) -> List[FeatureVector]:
        """
        Independent extractions in a thread pool; output order == input order.

        Workers run without instrumentation: the timeline keeps one entry
        per leaf name.
        """
        worker = FeatureExtractor(self.cfg, self.decoder)
        return ParallelExecutor.run(
            items=requests,
            handler=worker._extract_request,
            max_workers=self.cfg.max_workers,
        )

    def compute(self, decoded: DecodedMedia, title: str, description: str) -> FeatureVector:
        """
        Pure part of extraction: decoded buffers -> FeatureVector.
        """
        with self.inst.timer("feature_extract.compute"):
            raw = {
                "title_length": float(len(title or "")),
                "description_length": float(len(description or "")),
                **self._visual(decoded),
                **self._audio(decoded),
            }

        vector = FeatureVector.from_raw(raw)
        logs.debug(f"[FeatureExtractor] {vector.as_dict()}")
        return vector

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _visual(self, decoded: DecodedMedia) -> dict:
        if decoded.frame is None:
            return {"edge_intensity": 0.0, "color_histogram": 0.0}
        return {
            "edge_intensity": edge_intensity(decoded.frame, self.cfg.edge_divisor),
            "color_histogram": color_histogram(decoded.frame, self.cfg.color_bucket_bits),
        }

    def _audio(self, decoded: DecodedMedia) -> dict:
        window = int(self.cfg.audio_window_seconds * decoded.sample_rate)
        samples = decoded.samples[:window]
        spectrum = magnitude_spectrum(samples, self.cfg.fft_size)
        return {
            "spectral_entropy": spectral_entropy(spectrum),
            "audio_intensity": audio_intensity(samples, self.cfg.intensity_divisor),
        }

    def _extract_request(self, req: ExtractionRequest) -> FeatureVector:
        if req.path is not None:
            return self.extract_path(req.path, req.title, req.description)
        return self.extract(req.data or b"", req.title, req.description)
