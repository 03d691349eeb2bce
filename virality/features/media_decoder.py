# virality/features/media_decoder.py
"""
Media decoding through ffmpeg / ffprobe.

Bytes are staged into a private temporary directory for the duration of
one decode call and removed on every exit path; decoded buffers are
returned to the caller and nothing is cached between calls.
"""
from __future__ import annotations

import json
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import numpy as np

from virality import logs
from virality.config.feature_config import FeatureConfig
from virality.utils.errors import MediaDecodeError


@dataclass(frozen=True)
class MediaProbe:
    duration: float
    has_video: bool
    has_audio: bool
    width: int = 0
    height: int = 0


@dataclass
class DecodedMedia:
    """
    frame   : (H, W, 3) uint8 RGB, None when the input has no video stream
    samples : float32 mono PCM in [-1, 1], empty when there is no audio
    """

    frame: Optional[np.ndarray]
    samples: np.ndarray
    sample_rate: int


class MediaDecoder:
    """
    MediaDecoder（stateless）

    Safe to share between threads: every call owns its own temp dir and
    subprocesses.
    """

    def __init__(self, cfg: FeatureConfig | None = None):
        self.cfg = cfg or FeatureConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def decode(self, data: bytes) -> DecodedMedia:
        if not data:
            raise MediaDecodeError("empty media buffer")

        with self.staged(data) as path:
            return self.decode_path(path)

    def decode_path(self, path: Path | str) -> DecodedMedia:
        path = Path(path)
        if not path.exists():
            raise MediaDecodeError(f"media file not found: {path}")

        probe = self.probe(path)
        if not probe.has_video and not probe.has_audio:
            raise MediaDecodeError(f"no audio or video stream in {path.name}")

        frame = None
        if probe.has_video:
            frame = self.read_frame(path, probe)
        else:
            logs.warning(f"[MediaDecoder] {path.name}: no video stream, visual features = 0")

        if probe.has_audio:
            samples = self.read_audio(path)
        else:
            logs.warning(f"[MediaDecoder] {path.name}: no audio stream, audio features = 0")
            samples = np.zeros(0, dtype=np.float32)

        return DecodedMedia(frame=frame, samples=samples, sample_rate=self.cfg.audio_sample_rate)

    @contextmanager
    def staged(self, data: bytes) -> Iterator[Path]:
        """
        Write bytes to a private temp file; removed when the block exits.
        """
        with tempfile.TemporaryDirectory(prefix="virality_") as tmp:
            path = Path(tmp) / "input.media"
            path.write_bytes(data)
            yield path

    # ------------------------------------------------------------------
    # ffprobe / ffmpeg
    # ------------------------------------------------------------------
    def probe(self, path: Path) -> MediaProbe:
        cmd = [
            self.cfg.ffprobe_bin, "-v", "error",
            "-show_entries", "format=duration:stream=codec_type,width,height",
            "-of", "json",
            str(path),
        ]
        out = self._run(cmd, what="probe")

        try:
            info = json.loads(out.decode("utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MediaDecodeError(f"unreadable ffprobe output: {e}")

        streams = info.get("streams", [])
        video = next((s for s in streams if s.get("codec_type") == "video"), None)
        audio = next((s for s in streams if s.get("codec_type") == "audio"), None)

        try:
            duration = float(info.get("format", {}).get("duration", 0.0))
        except (TypeError, ValueError):
            duration = 0.0

        return MediaProbe(
            duration=duration,
            has_video=video is not None,
            has_audio=audio is not None,
            width=int(video.get("width", 0)) if video else 0,
            height=int(video.get("height", 0)) if video else 0,
        )

    def read_frame(self, path: Path, probe: MediaProbe) -> np.ndarray:
        """
        One RGB frame at `frame_offset_ratio * duration`, scaled to a fixed
        width. Falls back to the first frame when the offset yields nothing
        (zero / unknown duration, single-frame streams).
        """
        offset = max(0.0, probe.duration * self.cfg.frame_offset_ratio)

        buf = self._grab_frame(path, offset)
        if not buf and offset > 0.0:
            logs.debug(f"[MediaDecoder] no frame at {offset:.3f}s, using first frame")
            buf = self._grab_frame(path, 0.0)

        width = self.cfg.frame_width
        row = width * 3
        if not buf or len(buf) % row != 0:
            raise MediaDecodeError(
                f"could not decode a video frame from {path.name} (got {len(buf)} bytes)"
            )

        height = len(buf) // row
        return np.frombuffer(buf, dtype=np.uint8).reshape(height, width, 3).copy()

    def read_audio(self, path: Path) -> np.ndarray:
        cmd = [
            self.cfg.ffmpeg_bin, "-nostdin", "-loglevel", "error",
            "-i", str(path),
            "-vn",
            "-ac", "1",
            "-ar", str(self.cfg.audio_sample_rate),
            "-t", f"{self.cfg.audio_window_seconds:.3f}",
            "-f", "f32le",
            "pipe:1",
        ]
        buf = self._run(cmd, what="audio decode")
        usable = len(buf) - len(buf) % 4
        return np.frombuffer(buf[:usable], dtype=np.float32).copy()

    def _grab_frame(self, path: Path, offset: float) -> bytes:
        cmd = [
            self.cfg.ffmpeg_bin, "-nostdin", "-loglevel", "error",
            "-ss", f"{offset:.3f}",
            "-i", str(path),
            "-frames:v", "1",
            "-vf", f"scale={self.cfg.frame_width}:-2",
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "pipe:1",
        ]
        return self._run(cmd, what="frame decode")

    def _run(self, cmd: List[str], *, what: str) -> bytes:
        try:
            result = subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                timeout=self.cfg.decode_timeout_seconds,
            )
        except FileNotFoundError:
            raise MediaDecodeError(f"{cmd[0]} not found in PATH")
        except subprocess.TimeoutExpired:
            raise MediaDecodeError(
                f"{what} timed out after {self.cfg.decode_timeout_seconds}s"
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise MediaDecodeError(f"{what} failed: {stderr or e}", stderr=stderr)

        return result.stdout
