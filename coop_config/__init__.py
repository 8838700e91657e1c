"""
coop_config -- single public entrypoint for society settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``. Returns a frozen ``SocietySettings`` whose
    sections are the kernel policy objects services are constructed with.

Architecture position:
    Configuration -- YAML-driven. Sits above ``coop_kernel``; the kernel
    MUST NEVER import from ``coop_config``.

Failure modes:
    - ``FileNotFoundError`` when the settings file does not exist.
    - ``ValueError`` / ``KeyError`` for malformed settings.

Audit relevance:
    Every successful call emits a ``COOP_CONFIG_TRACE`` log entry carrying
    the society name, version and SHA-256 checksum of the parsed file.
"""

from __future__ import annotations

import logging
from pathlib import Path

from coop_config.loader import load_yaml_file, parse_settings
from coop_config.schema import SocietySettings

_logger = logging.getLogger("coop_kernel.config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_settings(config_path: Path | str | None = None) -> SocietySettings:
    """
    Load and parse the society settings.

    Args:
        config_path: Settings file to read. Defaults to the packaged
            ``defaults.yaml``.
    """
    path = Path(config_path) if config_path else DEFAULT_SETTINGS_PATH
    settings = parse_settings(load_yaml_file(path))

    _logger.info(
        "COOP_CONFIG_TRACE",
        extra={
            "trace_type": "COOP_CONFIG_TRACE",
            "society_name": settings.society_name,
            "settings_version": settings.version,
            "currency": settings.currency,
            "checksum": settings.checksum,
            "source": str(path),
        },
    )
    return settings


__all__ = ["DEFAULT_SETTINGS_PATH", "SocietySettings", "get_active_settings"]
