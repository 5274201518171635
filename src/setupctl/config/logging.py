"""Logging for setupctl: structlog rendering on top of stdlib logging.

Everything goes to stderr so ``--json`` results on stdout stay parseable.
Infrastructure modules log through ``logging.getLogger(__name__)``; the
setup service emits structlog events.  Both pass through the same
processor chain, which also masks credentials embedded in recipe URLs.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

# HTTP stack used for recipe fetches; its DEBUG output includes full URLs.
_HTTP_LOGGERS = ("requests", "urllib3")

# user:password@ in a URL, and token-like query parameters.
_URL_USERINFO_RE = re.compile(r"(?P<scheme>https?://)[^/@\s]+@")
_URL_TOKEN_RE = re.compile(r"(?P<key>[?&](?:token|access_token|key|sig)=)[^&\s]+", re.IGNORECASE)


def mask_url_secrets(text: str) -> str:
    """Replace URL credentials and token query values in *text* with ``***``."""
    text = _URL_USERINFO_RE.sub(r"\g<scheme>***@", text)
    return _URL_TOKEN_RE.sub(r"\g<key>***", text)


def _mask_secrets(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if isinstance(value, str) and "://" in value:
            event_dict[key] = mask_url_secrets(value)
    return event_dict


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib records to stderr.

    Args:
        verbose: DEBUG for ``setupctl.*`` loggers; otherwise WARNING and up.
        log_json: One JSON object per line instead of console rendering.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _mask_secrets,
                _renderer(log_json),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("setupctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
