import logging
import sys

import structlog


def setup_logging(verbose: bool = False) -> None:
    """Send structured JSON log lines to stderr.

    stdout is reserved for rendered invoices.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        # resolve sys.stderr per logger so redirected streams are honoured
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "usage_invoicing"):
    # library callers that never set up logging get the quiet stderr default
    if not structlog.is_configured():
        setup_logging()
    return structlog.get_logger(name)
