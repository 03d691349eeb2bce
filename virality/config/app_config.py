#!filepath: virality/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .feature_config import FeatureConfig
from .training_config import TrainingConfig


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    virality/config/app_config.py → virality/config → virality → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    features: FeatureConfig = Field(default_factory=FeatureConfig)
    training: TrainingConfig = Field(default_factory=TrainingConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 virality/config/base.yml
        - 不依赖当前工作目录
        """
        # 1) .env（项目根目录）
        load_dotenv(os.path.join(project_root(), ".env"))

        # 2) 配置文件路径
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) env 覆盖
        model_dir = os.getenv("VIRALITY_MODEL_DIR")
        if model_dir:
            raw.setdefault("training", {})["model_dir"] = model_dir

        return cls(**raw)
