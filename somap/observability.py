"""
Observability infrastructure for somap
Provides structured logging, training metrics and operation tracing
"""

import logging
import time
import uuid
import structlog
from contextlib import contextmanager
from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
)


# Prometheus Metrics
TRAINING_DURATION = Histogram(
    "somap_training_duration_seconds",
    "SOM training duration in seconds",
    ["rows", "cols", "algorithm"],
)

TRAINING_ITERATIONS = Counter(
    "somap_training_iterations_total", "Total training iterations completed"
)

MAPS_CREATED = Counter("somap_maps_created_total", "Total number of maps created")

BMU_QUERIES = Counter(
    "somap_bmu_queries_total", "Total number of samples mapped to their BMU"
)


class CorrelationIDProcessor:
    """Add correlation ID to log entries"""

    def __call__(self, logger, method_name, event_dict):
        if "correlation_id" not in event_dict:
            event_dict["correlation_id"] = "unknown"
        return event_dict


def setup_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """Configure structured logging with structlog"""

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        CorrelationIDProcessor(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )


def get_correlation_id() -> str:
    """Generate a new correlation ID"""
    return str(uuid.uuid4())


@contextmanager
def trace_operation(operation_name: str, **extra_context):
    """Context manager for tracing operations with metrics and logging"""
    logger = structlog.get_logger()
    correlation_id = get_correlation_id()
    start_time = time.time()

    logger.info(
        "Operation started",
        operation=operation_name,
        correlation_id=correlation_id,
        **extra_context,
    )

    try:
        yield correlation_id
        duration = time.time() - start_time
        logger.info(
            "Operation completed",
            operation=operation_name,
            correlation_id=correlation_id,
            duration_seconds=duration,
            **extra_context,
        )
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            "Operation failed",
            operation=operation_name,
            correlation_id=correlation_id,
            duration_seconds=duration,
            error=str(e),
            error_type=type(e).__name__,
            **extra_context,
        )
        raise


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format"""
    return generate_latest()


def log_training_metrics(
    rows: int, cols: int, algorithm: str, duration: float, iterations: int
):
    """Log training metrics to Prometheus"""
    TRAINING_DURATION.labels(
        rows=str(rows), cols=str(cols), algorithm=algorithm
    ).observe(duration)
    TRAINING_ITERATIONS.inc(iterations)


def log_map_created():
    MAPS_CREATED.inc()


def log_bmu_query(samples: int):
    BMU_QUERIES.inc(samples)


__all__ = [
    "setup_logging",
    "trace_operation",
    "get_correlation_id",
    "get_metrics",
    "log_training_metrics",
    "log_map_created",
    "log_bmu_query",
]
