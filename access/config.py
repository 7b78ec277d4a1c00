from dataclasses import dataclass
import logging
import os
from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass
class Config:
    data_dir: str
    audit_enabled: bool
    audit_log_path: str
    log_level: int


def _flag(name, default):
    raw = os.getenv(name, default).strip().lower()
    if raw in ("true", "1", "yes"):
        return True
    if raw in ("false", "0", "no"):
        return False
    raise ConfigError(f"{name}: expected true/false, got {raw!r}")


def _level(name, default):
    raw = os.getenv(name, default).strip().upper()
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise ConfigError(f"{name}: unknown log level {raw!r}")
    return level


def load_config():
    load_dotenv(override=False)
    return Config(
        data_dir=os.getenv("ACCESS_DATA_DIR") or os.getcwd(),
        audit_enabled=_flag("ACCESS_AUDIT_ENABLED", "true"),
        audit_log_path=os.getenv("ACCESS_AUDIT_LOG_PATH", "access_audit.log"),
        log_level=_level("ACCESS_LOG_LEVEL", "WARNING"),
    )
