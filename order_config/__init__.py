"""
order_config -- single public entrypoint for order kernel configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``order_kernel``.  The kernel MUST NEVER
    import from ``order_config``; ``order_config.bridges`` translates a
    config into kernel objects.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Load-time validation: an invalid value raises ``ValueError`` before
      anything is built from it.
    - ``ORDER_KERNEL_DATABASE_URL`` overrides ``database.url``.

Audit relevance:
    Every successful call emits an ``ORDER_CONFIG_TRACE`` log entry with the
    config_id, version and checksum.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path

from order_config.loader import load_yaml_file, parse_config
from order_config.schema import OrderConfig
from order_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

DATABASE_URL_ENV = "ORDER_KERNEL_DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> OrderConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML configuration set to load.  Defaults to
            ``order_config/sets/default.yaml``.

    Returns:
        A frozen, validated OrderConfig.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ValueError: If any value fails validation.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(path))

    url_override = os.environ.get(DATABASE_URL_ENV)
    if url_override:
        config = dataclasses.replace(
            config,
            database=dataclasses.replace(config.database, url=url_override),
        )

    _logger.info(
        "ORDER_CONFIG_TRACE",
        extra={
            "trace_type": "ORDER_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "database_url_overridden": bool(url_override),
        },
    )
    return config


__all__ = ["OrderConfig", "get_active_config", "DATABASE_URL_ENV"]
