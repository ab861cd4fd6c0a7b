"""Logging configuration and utilities."""

import logging
import logging.config
import os
from typing import Optional

import yaml

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None
) -> None:
    """
    Setup logging configuration.

    Output goes to the console only; the gateway keeps no log files.

    Args:
        config_path: Path to logging configuration file
        log_level: Override log level
    """
    if config_path is None:
        config_path = os.environ.get("LOGGING_CONFIG", "config/logging.yaml")

    level_name = log_level.upper() if log_level else "INFO"

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)

            if log_level:
                config['root']['level'] = level_name
                for logger_name in config.get('loggers', {}):
                    config['loggers'][logger_name]['level'] = level_name

            logging.config.dictConfig(config)
        except (OSError, yaml.YAMLError, KeyError, ValueError) as e:
            logging.basicConfig(
                level=getattr(logging, level_name, logging.INFO),
                format=DEFAULT_LOG_FORMAT,
                handlers=[logging.StreamHandler()]
            )
            logging.warning(f"Failed to load logging config from {config_path}: {e}")
    else:
        logging.basicConfig(
            level=getattr(logging, level_name, logging.INFO),
            format=DEFAULT_LOG_FORMAT,
            handlers=[logging.StreamHandler()]
        )
        logging.warning(f"Logging config file not found at {config_path}, using basic configuration")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def mask_credential(value: Optional[str], visible: int = 20) -> str:
    """Return a log-safe prefix of a credential header."""
    if not value:
        return "NONE"
    return value[:visible] + "..."


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter appending request context to each message.

    The relay logs operation name, issue key or proxied path with every line,
    rendered as ``message | operation=add-comment | issue_key=PROJ-1``.
    Context entries set to None are left out.
    """

    def process(self, msg, kwargs):
        context = [f"{k}={v}" for k, v in self.extra.items() if v is not None]
        if context:
            msg = " | ".join([str(msg), *context])
        return msg, kwargs

    def with_context(self, **context) -> "ContextLogger":
        """Return a logger carrying this logger's context plus ``context``."""
        return ContextLogger(self.logger, {**self.extra, **context})


def get_context_logger(name: str, **context) -> ContextLogger:
    """Get a context logger for a module (typically __name__)."""
    return ContextLogger(get_logger(name), context)
