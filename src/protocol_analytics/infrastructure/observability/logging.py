"""
Structured logging for the protocol analytics pipeline.
Every aggregation cycle and every cached read leaves machine-readable events.

Log Structure:
    {
        "app": "protocol-analytics",   # Application identifier
        "layer": "ingestion",          # Architectural layer
        "component": "graphql",        # Specific component
        "source": "lockup_evm",        # Domain context
        "event": "fetcher_failed",     # What happened
        ...
    }

Architectural Layers:
    - ingestion: Upstream indexers (connectors, metric fetchers)
    - processing: Aggregation, integrity validation, compaction
    - storage: Key-value store adapters and the cache gateway
    - pipeline: Refresh / merge workflows and the trigger surface
    - serving: Freshness decisions on the read path
"""

import logging
import sys
from typing import Any, Literal, TextIO

import structlog
from structlog.types import EventDict

APP_NAME = "protocol-analytics"

Layer = Literal["ingestion", "processing", "storage", "pipeline", "serving"]


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every entry with the application identifier."""
    event_dict["app"] = APP_NAME
    return event_dict


def add_severity_level(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Add severity level for cloud logging compatibility.
    Maps Python log levels to standard severity levels.
    """
    level = event_dict.get("level")
    if level:
        severity_map = {
            "debug": "DEBUG",
            "info": "INFO",
            "warning": "WARNING",
            "error": "ERROR",
            "critical": "CRITICAL",
        }
        event_dict["severity"] = severity_map.get(level, "INFO")
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_logs: bool = True,
    include_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON. If False, use human-readable format (dev mode).
        include_timestamp: Whether to include ISO timestamps in logs
        stream: Output stream, stdout by default

    Usage:
        >>> from protocol_analytics.infrastructure.observability import setup_logging
        >>> setup_logging(level="DEBUG", json_logs=False)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=log_level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.stdlib.add_log_level,
        add_severity_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    name: str | None = None,
    layer: Layer | None = None,
    component: str | None = None,
    **initial_context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger with architectural context bound.

    Args:
        name: Logger name (typically __name__ of the calling module)
        layer: Architectural layer
        component: Specific component within the layer
        **initial_context: Additional key-value pairs to bind

    Usage:
        >>> log = get_logger(__name__, layer="ingestion", component="graphql")
        >>> log.info("page_fetched", rows=1000)
    """
    context: dict[str, Any] = {}
    if layer:
        context["layer"] = layer
    if component:
        context["component"] = component
    if name:
        context["module"] = name
    context.update(initial_context)

    # Resolved on first use, so module-level loggers pick up setup_logging()
    return structlog.get_logger(name, **context)


# ============================================================================
# Layer-Specific Logger Factories
# ============================================================================


def get_ingestion_logger(
    component: str,
    source: str | None = None,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for the ingestion layer.

    Usage:
        >>> log = get_ingestion_logger("fetcher", source="lockup_evm")
        >>> log.warning("fetcher_failed", metric="total_users")
    """
    ctx = {}
    if source:
        ctx["source"] = source
    ctx.update(context)

    return get_logger("ingestion", layer="ingestion", component=component, **ctx)


def get_processing_logger(
    component: str,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """Logger for aggregation, validation and compaction."""
    return get_logger("processing", layer="processing", component=component, **context)


def get_storage_logger(
    component: str,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for the storage layer.

    Usage:
        >>> log = get_storage_logger("edge-config", key="analytics")
        >>> log.info("snapshot_published", size_bytes=120000)
    """
    return get_logger("storage", layer="storage", component=component, **context)


def get_pipeline_logger(
    component: str = "workflow",
    dataset: str | None = None,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for workflows and the trigger surface.

    Args:
        component: Component name (default: "workflow")
        dataset: Dataset key being refreshed (optional)
        **context: Additional context
    """
    ctx = {}
    if dataset:
        ctx["dataset"] = dataset
    ctx.update(context)

    return get_logger("pipeline", layer="pipeline", component=component, **ctx)


def get_serving_logger(
    component: str = "freshness",
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    return get_logger("serving", layer="serving", component=component, **context)
