"""Конфигурация сервера из переменных окружения."""
import logging
import os
from functools import lru_cache


def _flag(name: str) -> bool:
    return os.environ.get(name, "0").lower() in ("1", "true", "yes")


def _log_level(default: str) -> str:
    """Уровень логов из LOG_LEVEL; неизвестное имя — default."""
    level = os.environ.get("LOG_LEVEL", default).upper()
    if not isinstance(logging.getLevelName(level), int):
        return default
    return level


@lru_cache
def get_config():
    debug = _flag("DEBUG")
    return type("Config", (), {
        "debug": debug,
        "allowed_origins": os.environ.get("ALLOWED_ORIGINS", "*").split(","),
        "host": os.environ.get("HOST", "0.0.0.0"),
        "port": int(os.environ.get("PORT") or 3000),
        "log_level": _log_level("DEBUG" if debug else "INFO"),
        "static_dir": os.environ.get("STATIC_DIR", ""),
    })()
