"""
mes_config -- single public entrypoint for MES configuration.

Responsibility:
    Provides the one way to obtain configuration at runtime through
    ``get_active_config()``.  Profiles are YAML files under
    ``mes_config/sets/`` (``<profile>.yaml``).

Architecture position:
    Configuration -- sits above ``mes_kernel`` and below ``mes_services``.
    The kernel never imports from ``mes_config``.

Failure modes:
    - ``FileNotFoundError`` -- no profile file with that name.
    - ``KeyError`` / ``ValueError`` -- schema violations (see loader).

Every successful call emits a ``MES_CONFIG_TRACE`` log entry carrying the
profile, checksum and storage backend.
"""

from __future__ import annotations

from pathlib import Path

from mes_config.loader import load_config
from mes_config.schema import (
    LedgerConfig,
    LineSeed,
    MaterialStatusConfig,
    MesConfig,
    StorageConfig,
    StorageKeys,
)
from mes_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    profile: str = "default",
    config_dir: Path | None = None,
) -> MesConfig:
    """Load the named configuration profile.

    Args:
        profile: Profile name; the file ``<profile>.yaml`` is loaded.
        config_dir: Override path to the profiles directory.
            Defaults to mes_config/sets/.

    Raises:
        FileNotFoundError: If the profile file does not exist.
        KeyError: If a required key is missing.
        ValueError: If a value fails validation.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{profile}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Configuration profile not found: {path}")

    config = load_config(path)

    _logger.info(
        "MES_CONFIG_TRACE",
        extra={
            "trace_type": "MES_CONFIG_TRACE",
            "profile": config.profile,
            "checksum": config.checksum,
            "storage_backend": config.storage.backend,
            "line_count": len(config.lines),
        },
    )
    return config


__all__ = [
    "get_active_config",
    "MesConfig",
    "StorageConfig",
    "StorageKeys",
    "LedgerConfig",
    "MaterialStatusConfig",
    "LineSeed",
]
