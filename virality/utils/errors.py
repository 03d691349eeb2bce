# virality/utils/errors.py
from __future__ import annotations

from typing import Iterable


class ViralityError(RuntimeError):
    """
    Base of every error raised by the core.

    The CLI reports these without a traceback.
    """


class UserInputError(ViralityError):
    """
    Raised for invalid user-provided input (paths, options, config values).
    """


class SchemaError(ViralityError):
    """
    Training table is missing required columns or is otherwise malformed.
    """

    def __init__(self, message: str, columns: Iterable[str] = ()):
        super().__init__(message)
        self.columns = list(columns)


class EmptyDatasetError(SchemaError):
    """
    No valid data row survived parsing.
    """


class MediaDecodeError(ViralityError):
    """
    Video / audio bytes could not be probed or decoded.
    """

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class InvalidFeatureError(ViralityError):
    """
    A feature vector contains values that must not reach the network.
    """

    def __init__(self, message: str, fields: Iterable[str] = ()):
        super().__init__(message)
        self.fields = list(fields)


class ModelNotLoadedError(ViralityError):
    """
    Prediction requested before weights + scaler stats were loaded or trained.
    """


class ModelArtifactError(ViralityError):
    """
    Persisted model artifact is incomplete or inconsistent with its weights.
    """


class TrainingInProgressError(ViralityError):
    """
    A second fit was requested while a run owns the model handle.
    """


class TrainingDivergedError(ViralityError):
    """
    Loss or a validation metric became non-finite.
    """

    def __init__(self, message: str, epoch: int | None = None):
        super().__init__(message)
        self.epoch = epoch
