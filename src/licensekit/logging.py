# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Structured logging for licensekit.

Configures `structlog <https://www.structlog.org/>`_ with two output modes:

- **Console** (default when TTY): colored, human-readable output.
- **JSON** (``--json-log``): Machine-readable, one JSON object per line.

Both modes write to stderr so stdout remains clean for piped output
(e.g., ``licensekit expand 'GPL-2.0-or-later' | xargs ...``).

Library callers that never call :func:`configure_logging` still get
quiet output: on import, if the application has not configured
structlog itself, events below INFO are dropped and the rest go to
stderr.

Usage::

    from licensekit.logging import configure_logging, get_logger

    configure_logging(verbose=True, json_log=False)
    log = get_logger('licensekit.normalizer')
    log.info('license_guessed', title='Apache 2', license='Apache-2.0')
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

__all__ = [
    'configure_logging',
    'get_logger',
    'stringify_expressions',
]

# Plain values that renderers already handle.
_PASSTHROUGH = (str, int, float, bool, type(None), list, tuple, dict)


def stringify_expressions(
    logger: Any,  # noqa: ANN401
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor: render license values through ``str()``.

    Expressions, licenses and verdicts print as ``MIT OR Apache-2.0``
    instead of their dataclass ``repr``, in both console and JSON
    output.
    """
    return {
        k: v if k == 'exc_info' or isinstance(v, _PASSTHROUGH) else str(v) for k, v in event_dict.items()
    }


def _level(*, verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def _renderer(*, json_log: bool, colors: bool) -> structlog.types.Processor:
    if json_log:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors)


def _install_library_defaults(file: TextIO | None = None) -> None:
    """Filter at INFO and print to *file* (stderr) until configured."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            stringify_expressions,
            _renderer(json_log=False, colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file or sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Route licensekit events through the stdlib root logger.

    Called once by the CLI at startup; calling it again replaces the
    previous setup.

    Args:
        verbose: Enable debug-level output.
        quiet: Only warnings and errors; wins over *verbose*.
        json_log: Use JSON output instead of console output.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=_level(verbose=verbose, quiet=quiet),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            stringify_expressions,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_log=json_log, colors=sys.stderr.isatty()),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'licensekit') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger named *name*."""
    return structlog.get_logger(name)


if not structlog.is_configured():
    _install_library_defaults()
