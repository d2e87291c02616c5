"""
Loguru sinks for the docqa CLI and API server.

Log calls across the package start with a component tag ("[Ingest] ...",
"[Registry] ..."). The patcher below lifts that tag into
record["extra"]["component"] so the file sink gets a fixed column that can
be grepped per component; untagged messages fall back to the module name.
"""
from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

_TAG_RE = re.compile(r"^\[(\w+)\]\s*")


def _tag_component(record: dict) -> None:
    match = _TAG_RE.match(record["message"])
    if match:
        record["extra"]["component"] = match.group(1)
    else:
        record["extra"]["component"] = (record["name"] or "").rsplit(".", 1)[-1]


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/docqa.log",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru.

    - Console: coloured, human-readable, on stderr so `ask --json` output
      on stdout stays parseable
    - File: rotating, compressed, one component column; skipped when
      log_file is empty
    """
    logger.remove()
    logger.configure(patcher=_tag_component)

    logger.add(
        sys.stderr,
        level=log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if not log_file:
        logger.info(f"Logger initialised | level={log_level} | file=<none>")
        return

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]: <10} | {name}:{line} - {message}",
        rotation=rotation,
        retention=retention,
        compression="zip",
        enqueue=True,
    )

    logger.info(f"Logger initialised | level={log_level} | file={log_file}")


def setup_from_config(cfg: dict) -> None:
    """Apply the `logging` section of the loaded config."""
    log_cfg = cfg.get("logging", {})
    setup_logger(
        log_level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        rotation=log_cfg.get("rotation", "10 MB"),
        retention=log_cfg.get("retention", "7 days"),
    )
