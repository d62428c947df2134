"""
Centralized logging: console plus optional compressed rotating files, one manager per process.
"""
import sys
import os
import re
import gzip
import shutil
import atexit
import logging
import logging.handlers
import threading
from pathlib import Path
from typing import Dict, Any
from pythonjsonlogger import jsonlogger
from core.config import settings


# Logger names routed to each component file
COMPONENT_LOGGERS = {
    "security": ["security", "auth", "identity"],
    "database": ["database", "sqlalchemy.engine", "alembic"],
    "access": ["access", "uvicorn.access", "middleware"],
}


# Attributes a LogRecord already owns; context keys must not clobber them
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ComponentFilter(logging.Filter):
    """Guarantee every record carries a ``component`` attribute."""

    def __init__(self, default_component: str = "app"):
        super().__init__()
        self.default_component = default_component

    def filter(self, record):
        if not hasattr(record, "component"):
            name = record.name
            if name.startswith("uvicorn") or name == "httpx":
                record.component = "http"
            elif name.startswith(("sqlalchemy", "alembic")):
                record.component = "database"
            else:
                record.component = self.default_component
        return True


class SecurityFilter(logging.Filter):
    """Redact tokens, credentials and secret-looking keys."""

    SENSITIVE_KEYS = {
        "password", "token", "secret", "api_key", "authorization",
        "credential", "jwt", "bearer", "smtp_password", "id_token",
    }
    _BEARER = re.compile(r"Bearer\s+[A-Za-z0-9\-_=]+\.[A-Za-z0-9\-_=]+\.[A-Za-z0-9\-_=]+")
    _URL_CREDENTIALS = re.compile(r"://[^:/\s]+:[^@\s]+@")

    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = self._sanitize_message(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = self._sanitize_value(record.args)
            else:
                record.args = tuple(self._sanitize_value(arg) for arg in record.args)
        return True

    def _sanitize_message(self, message: str) -> str:
        message = self._BEARER.sub("Bearer [REDACTED]", message)
        return self._URL_CREDENTIALS.sub("://[REDACTED]:[REDACTED]@", message)

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._sanitize_message(value)
        if isinstance(value, dict):
            return {
                k: "[REDACTED]" if any(s in str(k).lower() for s in self.SENSITIVE_KEYS) else v
                for k, v in value.items()
            }
        return value


class CompressedRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Size-based rotating handler that gzips the most recent backup."""

    def __init__(self, *args, **kwargs):
        self.compress_logs = kwargs.pop("compress_logs", settings.log_compression)
        super().__init__(*args, **kwargs)

    def doRollover(self):
        super().doRollover()
        if not (self.compress_logs and self.backupCount > 0):
            return

        backup_file = f"{self.baseFilename}.1"
        if not os.path.exists(backup_file):
            return
        try:
            # Shift older archives first so .1.gz is free
            for i in range(self.backupCount - 1, 0, -1):
                older = f"{self.baseFilename}.{i}.gz"
                newer = f"{self.baseFilename}.{i + 1}.gz"
                if os.path.exists(older):
                    if os.path.exists(newer):
                        os.remove(newer)
                    os.rename(older, newer)
            with open(backup_file, "rb") as f_in, gzip.open(f"{backup_file}.gz", "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)
            os.remove(backup_file)
        except OSError as e:
            # Keep the uncompressed backup
            sys.stderr.write(f"Warning: failed to compress log file {backup_file}: {e}\n")


class StructuredLogger:
    """Logger wrapper accepting keyword context: ``logger.info("msg", smell_id=1)``."""

    def __init__(self, name: str, logger: logging.Logger):
        self.name = name
        self._logger = logger

    def _log(self, level: int, msg: str, *args, **kwargs):
        exc_info = kwargs.pop("exc_info", False)
        extra = kwargs.pop("extra", {})
        extra.setdefault("component", self.name)

        if kwargs:
            if settings.log_format == "json":
                # JsonFormatter serialises extra attributes as fields
                extra.update({(f"{k}_" if k in _RESERVED_ATTRS else k): v for k, v in kwargs.items()})
            else:
                msg = f"{msg} [{', '.join(f'{k}={v}' for k, v in kwargs.items())}]"

        self._logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs["exc_info"] = True
        self.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        self._log(logging.CRITICAL, msg, *args, **kwargs)


class CentralizedLogManager:
    """Singleton that owns handler setup and hands out structured loggers."""

    _instance = None
    _lock = threading.Lock()
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return
            self._loggers: Dict[str, StructuredLogger] = {}
            self._handlers: Dict[str, logging.Handler] = {}
            self._log_directory = Path(settings.log_directory)
            if settings.enable_file_logging:
                self._log_directory.mkdir(parents=True, exist_ok=True)
            self._setup_root_logger()
            self._setup_component_loggers()
            self._initialized = True

    def _create_formatter(self, include_component: bool) -> logging.Formatter:
        if settings.log_format == "json":
            fmt = "%(asctime)s %(name)s %(levelname)s %(message)s"
            if include_component:
                fmt = "%(asctime)s %(name)s %(levelname)s %(component)s %(message)s"
            return jsonlogger.JsonFormatter(fmt=fmt, datefmt="%Y-%m-%dT%H:%M:%S")

        fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        if include_component:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(component)s] - %(message)s"
        return logging.Formatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def _create_rotating_handler(self, log_file: str, level: int = logging.INFO) -> logging.Handler:
        handler = CompressedRotatingFileHandler(
            filename=str(self._log_directory / log_file),
            maxBytes=settings.log_file_max_size_mb * 1024 * 1024,
            backupCount=settings.log_file_backup_count,
            compress_logs=settings.log_compression,
        )
        handler.setLevel(level)
        handler.addFilter(ComponentFilter())
        handler.addFilter(SecurityFilter())
        handler.setFormatter(self._create_formatter(include_component=True))
        return handler

    def _create_console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
        handler.addFilter(ComponentFilter())
        handler.addFilter(SecurityFilter())
        handler.setFormatter(self._create_formatter(include_component=False))
        return handler

    def _setup_root_logger(self):
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

        console_handler = self._create_console_handler()
        root_logger.addHandler(console_handler)
        self._handlers["console"] = console_handler

        if settings.enable_file_logging:
            app_handler = self._create_rotating_handler(settings.app_log_file)
            root_logger.addHandler(app_handler)
            self._handlers["app"] = app_handler

            error_handler = self._create_rotating_handler(settings.error_log_file, logging.ERROR)
            root_logger.addHandler(error_handler)
            self._handlers["error"] = error_handler

    def _setup_component_loggers(self):
        if not settings.enable_file_logging:
            return

        files = {
            "security": settings.security_log_file,
            "database": settings.database_log_file,
            "access": settings.access_log_file,
        }
        for component, logger_names in COMPONENT_LOGGERS.items():
            level = logging.INFO
            if component == "database" and not settings.enable_sql_logging:
                level = logging.WARNING
            handler = self._create_rotating_handler(files[component], level)
            self._handlers[component] = handler
            for logger_name in logger_names:
                logging.getLogger(logger_name).addHandler(handler)

    def get_logger(self, name: str) -> StructuredLogger:
        if name not in self._loggers:
            self._loggers[name] = StructuredLogger(name, logging.getLogger(name))
        return self._loggers[name]

    def shutdown(self):
        for handler in self._handlers.values():
            try:
                handler.close()
            except OSError:
                pass
        self._handlers.clear()
        self._loggers.clear()
        logging.shutdown()
        self._initialized = False


_log_manager = None


def setup_logging() -> CentralizedLogManager:
    """Initialise the logging system once per process."""
    global _log_manager
    if _log_manager is None:
        _log_manager = CentralizedLogManager()
    return _log_manager


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a component."""
    return setup_logging().get_logger(name)


def shutdown_logging():
    global _log_manager
    if _log_manager is not None:
        _log_manager.shutdown()
        _log_manager = None


# Pre-configured logger instances for common components
app_logger = get_logger("app")
security_logger = get_logger("security")
database_logger = get_logger("database")
access_logger = get_logger("access")

atexit.register(shutdown_logging)
