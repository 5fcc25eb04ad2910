import math
import os
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .validation import DEFAULT_KEY_SIZE

load_dotenv()


def _int_env(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _float_env(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a finite number greater than 0, got {raw!r}")
    return value


class Settings:
    """Provisioning defaults, read from the environment on construction."""

    def __init__(self):
        self.KEY_SIZE = _int_env("ENVKEYS_KEY_SIZE", DEFAULT_KEY_SIZE)
        self.OUTPUT = os.getenv("ENVKEYS_OUTPUT", ".env")
        self.PROFILE = os.getenv("ENVKEYS_PROFILE", "pkcs1")
        self.TIMEOUT = _float_env("ENVKEYS_TIMEOUT", None)
        self.PRIVATE_NAME = os.getenv("ENVKEYS_PRIVATE_NAME", "JWT_PRIVATE")
        self.PUBLIC_NAME = os.getenv("ENVKEYS_PUBLIC_NAME", "JWT_PUBLIC")
        self.LOG_LEVEL = os.getenv("ENVKEYS_LOG_LEVEL", "INFO").upper()


def get_settings():
    return Settings()
