import logging
import sys

import structlog

# stdlib loggers of the HTTP and SDK layers, rendered through structlog
LIBRARY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")

shared_processors = [
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%H:%M:%S"),
]


def log_level(verbose: bool = False, machine_output: bool = False) -> str:
    """Debug when asked for, otherwise keep stderr quiet while stdout carries JSON."""
    if verbose:
        return "DEBUG"
    return "WARNING" if machine_output else "INFO"


def _renderer(json_logs: bool):
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(level: str = "INFO", json_logs: bool = False):
    renderer = _renderer(json_logs)
    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared_processors,
        )
    )
    # request lines from httpx only in debug runs
    library_level = logging.INFO if level == "DEBUG" else max(logging.WARNING, getattr(logging, level))
    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers = [handler]
        library_logger.setLevel(library_level)
        library_logger.propagate = False


def get_logger(name: str | None = None):
    return structlog.get_logger(name or "llmgrep")
