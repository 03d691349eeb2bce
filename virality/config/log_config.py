#!filepath: virality/config/log_config.py
from pydantic import BaseModel, field_validator

LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class LogConfig(BaseModel):
    dir: str = "logs"
    rotation: str = "1 day"
    retention: str = "30 days"
    level: str = "INFO"
    console: bool = False  # mirror to stderr (CLI runs)

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LEVELS:
            raise ValueError(f"unknown log level: {v}")
        return v
