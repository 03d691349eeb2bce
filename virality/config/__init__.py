from .app_config import AppConfig
from .feature_config import FeatureConfig
from .log_config import LogConfig
from .training_config import TrainingConfig, regression_preset

__all__ = ["AppConfig", "FeatureConfig", "LogConfig", "TrainingConfig", "regression_preset"]
