import logging
import os
import sys
from typing import Protocol

from loki_logger_handler.loki_logger_handler import LokiLoggerHandler

from boss.services.ray_id_service import ray_id_context


LOG_FORMAT = "%(asctime)s - [%(ray_id)s] - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO (one line per signed request or HTTP call)
NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore")


class LoggingConfig(Protocol):
    log_level: str
    loki_enabled: bool
    loki_url: str
    environment: str


class RayIDFilter(logging.Filter):
    """Fill in ``record.ray_id`` from the request contextvar when a record lacks it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "ray_id"):
            record.ray_id = ray_id_context.get()
        return True


def setup_loki_logging(config: LoggingConfig, service_name: str) -> logging.Logger:
    """
    Configure stdout logging, plus Loki shipping when enabled.

    Args:
        config: Application configuration
        service_name: Label attached to every Loki stream (e.g. "boss-api")

    Returns:
        The service's root logger
    """
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if config.loki_enabled and config.loki_url:
        loki_handler = LokiLoggerHandler(
            url=config.loki_url,
            labels={
                "service": service_name,
                "environment": config.environment,
                "host": os.getenv("HOSTNAME", "unknown"),
            },
            timeout=10,
            compressed=True,
        )
        handlers.append(loki_handler)

    ray_id_filter = RayIDFilter()
    for handler in handlers:
        handler.addFilter(ray_id_filter)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    if log_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(service_name)
