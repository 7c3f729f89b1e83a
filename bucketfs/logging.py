# Copyright 2026 The bucketfs Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""structlog setup for applications embedding bucketfs and for its CLI.

Library modules only call structlog.get_logger(__name__) and never configure
anything on import. An application calls configure_structlog() once at
startup; the settings come from the environment:

    LOG_LEVEL   DEBUG, INFO, WARNING, ERROR or CRITICAL (default INFO)
    LOG_FORMAT  console, json, gcp or auto (default auto: console on a TTY, json otherwise)
    LOG_FILE    also write events to this rotating file (default: stderr only)

Usage:
    import structlog
    from bucketfs.logging import configure_structlog

    configure_structlog()
    structlog.get_logger(__name__).info("Uploaded object", key="site/docs/readme.md")
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List

import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer

LOG_FORMATS = ("console", "json", "gcp")

# 10MB per file, 3 rotated files kept
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def get_log_level() -> int:
    """Numeric level for LOG_LEVEL; unknown names fall back to INFO."""
    name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_log_format() -> str:
    """
    Resolved LOG_FORMAT.

    "auto" picks console when stderr is a terminal and json otherwise. Unknown
    values fall back to json.
    """
    requested = os.getenv("LOG_FORMAT", "auto").lower()
    if requested == "auto":
        return "console" if sys.stderr.isatty() else "json"
    return requested if requested in LOG_FORMATS else "json"


def _gcp_processors() -> List[Any]:
    """
    Cloud Logging processor chain from structlog-gcp (renderer included).

    Raises:
        ValueError: If the 'gcp' extra is not installed
    """
    try:
        import structlog_gcp
    except ImportError as e:
        raise ValueError(
            "GCP format requires 'structlog-gcp' package. Install with: pip install 'bucketfs[gcp]'"
        ) from e

    return structlog_gcp.build_processors(
        service=os.getenv("SERVICE_NAME", "bucketfs"),
        version=os.getenv("SERVICE_VERSION", "0.1.0"),
    )


def _build_processors(log_format: str) -> List[Any]:
    if log_format == "gcp":
        return _gcp_processors()

    renderer = ConsoleRenderer(colors=sys.stderr.isatty()) if log_format == "console" else JSONRenderer()
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        renderer,
    ]


def _route_through_stdlib(log_file: str, level: int) -> None:
    """Send rendered events to stderr and a rotating file via the root logger."""
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    handlers = [
        logging.StreamHandler(sys.stderr),
        RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS),
    ]
    root = logging.getLogger()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        # events arrive already rendered by structlog
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)


def configure_structlog() -> None:
    """
    Configure structlog from LOG_LEVEL, LOG_FORMAT and LOG_FILE.

    Events go to stderr so stdout stays free for command output (file
    contents from `bucketfs cat`, listings, URLs).

    Raises:
        ValueError: If LOG_FORMAT=gcp and structlog-gcp is missing
    """
    level = get_log_level()
    processors = _build_processors(get_log_format())

    log_file = os.getenv("LOG_FILE")
    if log_file:
        _route_through_stdlib(log_file, level)
        factory: Any = structlog.stdlib.LoggerFactory()
    else:
        factory = structlog.PrintLoggerFactory(file=sys.stderr)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=factory,
        cache_logger_on_first_use=True,
    )
