"""
FlickPick Logging Configuration

Structured logging for the FlickPick backend:
- structlog processors rendered through stdlib handlers
- Rotating files for the full log and for errors only
- Quieter levels for noisy HTTP libraries
- Request-scoped context via contextvars
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

NOISY_MODULES = ("aiohttp.access", "aiohttp.client", "httpx", "urllib3", "uvicorn.access")


class FlickPickLogger:
    """
    Centralized logging configuration for FlickPick.

    Writes flickpick.log (everything at the configured level) and
    errors.log (ERROR and above), both rotated by size, plus an optional
    colored console stream.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: str = "INFO",
        enable_console: bool = True,
        max_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
    ):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory to store log files
            log_level: Default log level name
            enable_console: Whether to log to stdout
            max_file_size: Maximum size per log file before rotation
            backup_count: Number of rotated files to keep
        """
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.enable_console = enable_console
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

    def _setup_logging(self):
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        self._configure_structlog()
        self._setup_file_handlers()
        if self.enable_console:
            self._setup_console_handler()
        self._quiet_external_loggers()

        root_logger.setLevel(self.log_level)

    def _configure_structlog(self):
        shared_processors = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        structlog.configure(
            processors=shared_processors + [
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _setup_file_handlers(self):
        main_handler = self._create_rotating_file_handler("flickpick.log", self.log_level)
        error_handler = self._create_rotating_file_handler("errors.log", logging.ERROR)

        root_logger = logging.getLogger()
        for handler in (main_handler, error_handler):
            root_logger.addHandler(handler)

    def _create_rotating_file_handler(
        self,
        filename: str,
        level: int
    ) -> logging.handlers.RotatingFileHandler:
        handler = logging.handlers.RotatingFileHandler(
            filename=self.log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
        ))
        return handler

    def _setup_console_handler(self):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=True),
        ))
        logging.getLogger().addHandler(console_handler)

    def _quiet_external_loggers(self):
        # HTTP client libraries stay at WARNING even when debugging
        for module in NOISY_MODULES:
            logging.getLogger(module).setLevel(logging.WARNING)

    def get_logger(self, name: str) -> structlog.BoundLogger:
        return structlog.get_logger(name)

    def set_request_context(self, request_id: str, user_id: Optional[str] = None):
        """Bind request-scoped fields to every log line of the current request."""
        clear_contextvars()
        bind_contextvars(
            request_id=request_id,
            user_id=user_id,
            timestamp=datetime.utcnow().isoformat()
        )

    def log_api_request(
        self,
        method: str,
        url: str,
        status_code: int,
        duration: float,
        **kwargs
    ):
        self.get_logger("api").info(
            "api_request",
            method=method,
            url=url,
            status_code=status_code,
            duration_seconds=duration,
            **kwargs
        )

    def log_error(self, error: Exception, context: Dict[str, Any], **kwargs):
        self.get_logger("errors").error(
            "error_occurred",
            error_type=type(error).__name__,
            error_message=str(error),
            context=context,
            **kwargs
        )


_logger_instance: Optional[FlickPickLogger] = None


def setup_logging(
    log_dir: str = "logs",
    log_level: str = "INFO",
    enable_console: bool = True,
    **kwargs
) -> FlickPickLogger:
    """
    Set up the global logging configuration.

    Args:
        log_dir: Directory to store log files
        log_level: Default log level name
        enable_console: Whether to log to stdout
        **kwargs: Additional arguments for FlickPickLogger

    Returns:
        Configured logger instance
    """
    global _logger_instance

    _logger_instance = FlickPickLogger(
        log_dir=log_dir,
        log_level=log_level,
        enable_console=enable_console,
        **kwargs
    )
    return _logger_instance


def is_logging_configured() -> bool:
    return _logger_instance is not None


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a logger for a component.

    Raises:
        RuntimeError: If setup_logging() has not been called
    """
    if _logger_instance is None:
        raise RuntimeError("Logging not setup. Call setup_logging() first.")
    return _logger_instance.get_logger(name)


def log_api_request(method: str, url: str, status_code: int, duration: float, **kwargs):
    if _logger_instance:
        _logger_instance.log_api_request(method, url, status_code, duration, **kwargs)


def log_error(error: Exception, context: Dict[str, Any], **kwargs):
    if _logger_instance:
        _logger_instance.log_error(error, context, **kwargs)


def set_request_context(request_id: str, user_id: Optional[str] = None):
    if _logger_instance:
        _logger_instance.set_request_context(request_id, user_id)
