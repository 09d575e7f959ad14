"""
leasing_config -- single public entrypoint for leasing configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains settings.
    Bridges in this package translate them into kernel inputs; the kernel
    never imports ``leasing_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- missing or invalid settings.

Audit relevance:
    Every successful call emits a ``LEASING_CONFIG_TRACE`` log entry with
    the config id, version and checksum, tying each admission decision to
    the settings that governed it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from leasing_config.loader import load_configuration
from leasing_config.schema import LeasingConfiguration

_logger = logging.getLogger("leasing_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> LeasingConfiguration:
    """
    Load and validate the active configuration set.

    Args:
        config_path: Override path to a YAML configuration set.  Defaults
            to leasing_config/sets/default.yaml.
    """
    config = load_configuration(config_path or DEFAULT_CONFIG_PATH)

    _logger.info(
        "LEASING_CONFIG_TRACE",
        extra={
            "trace_type": "LEASING_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "coverage_floor": str(config.admission.coverage_floor),
            "gst_percentage": str(config.pricing.gst_percentage),
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_PATH", "LeasingConfiguration", "get_active_config"]
