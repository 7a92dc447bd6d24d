from __future__ import annotations

import os
from functools import lru_cache
from importlib import metadata

DISTRIBUTION_NAME = "treasurer-assistant"
FALLBACK_VERSION = "0.0.0"


def _resolve_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return FALLBACK_VERSION


@lru_cache
def get_version_info() -> dict[str, str]:
    return {
        "version": _resolve_version(),
        "gitSha": os.getenv("GIT_SHA", "unknown"),
        "env": os.getenv("APP_ENV", "development"),
    }
