# Настройка логирования: structlog поверх stdlib logging

import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Key-value логи structlog поверх stdlib logging"""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    # Streamlit пишет много служебного в INFO
    logging.getLogger("streamlit").setLevel(logging.WARNING)
