"""
Logging for ProjectDesk.

Every record carries the request id and, once they are known, the signed-in
user, their role and the project the URL points at. Development gets one
readable line per record, production writes one JSON object per line.
"""

import logging
import sys
import json
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from projectdesk.core.config import settings


request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')
user_role_var: ContextVar[str] = ContextVar('user_role', default='')
project_id_var: ContextVar[str] = ContextVar('project_id', default='')

# Order matters for the development line
_CONTEXT_VARS = (
    ("request_id", request_id_var),
    ("user_id", user_id_var),
    ("role", user_role_var),
    ("project_id", project_id_var),
)

_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "context"}


def log_context() -> Dict[str, str]:
    """Context values bound so far in this request"""
    return {key: var.get() for key, var in _CONTEXT_VARS if var.get()}


def get_request_id() -> str:
    return request_id_var.get()


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def bind_request(request_id: str, project_id: str = "") -> None:
    request_id_var.set(request_id)
    project_id_var.set(project_id)


def bind_user(user_id: str, role: str) -> None:
    user_id_var.set(user_id)
    user_role_var.set(role)


def clear_log_context() -> None:
    for _, var in _CONTEXT_VARS:
        var.set('')


class JSONFormatter(logging.Formatter):
    """Production formatter: request context and `extra=` fields become top-level keys"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
            **log_context(),
        }

        if record.exc_info and record.exc_info[0]:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith('_')
        )
        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Development formatter; exposes the bound context as %(context)s"""

    def format(self, record: logging.LogRecord) -> str:
        context = log_context()
        record.context = " ".join(f"{k}={v}" for k, v in context.items()) or "-"
        return super().format(record)


class ProjectDeskLogger(logging.Logger):
    """Logger with one helper per kind of event the service reports"""

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float) -> None:
        """Access line; slow or failing requests are raised to WARNING"""
        slow = duration_ms > settings.SLOW_REQUEST_MS
        level = logging.WARNING if slow or status_code >= 500 else logging.INFO
        self.log(
            level,
            f"{method} {path} -> {status_code} in {duration_ms:.0f}ms" + (" (slow)" if slow else ""),
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                "slow": slow,
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None) -> None:
        """Sign-up and sign-in outcomes; failures are warnings"""
        outcome = "ok" if success else f"refused ({reason or 'unknown'})"
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Auth {event} for {user_email or 'unknown user'}: {outcome}",
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
            }
        )

    def log_project_event(self, project_id: str, event: str, **fields) -> None:
        self.info(
            f"Project {project_id}: {event}",
            extra={"event_type": "project", "project_event": event, "project_ref": project_id, **fields}
        )

    def log_wizard_event(self, session_id: str, event: str, **fields) -> None:
        self.info(
            f"Wizard {session_id}: {event}",
            extra={"event_type": "wizard", "wizard_event": event, "wizard_session": session_id, **fields}
        )

    def log_failure(self, error: Exception, operation: str, **fields) -> None:
        """ERROR with traceback for a failed operation"""
        self.error(
            f"{operation} failed: {type(error).__name__}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "operation": operation,
                "error_type": type(error).__name__,
                **fields
            }
        )


def _file_handler(formatter: logging.Formatter, backup_count: int) -> RotatingFileHandler:
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=backup_count)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> ProjectDeskLogger:
    """Configure the `projectdesk` logger for the current ENVIRONMENT"""
    logging.setLoggerClass(ProjectDeskLogger)

    logger = logging.getLogger("projectdesk")
    logger.__class__ = ProjectDeskLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    json_logs = settings.ENVIRONMENT == "production"
    if json_logs:
        console_formatter = file_formatter = JSONFormatter()
        backup_count = 10
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s | %(context)s | %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | %(context)s | %(funcName)s:%(lineno)d | %(message)s"
        )
        backup_count = 5

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        logger.addHandler(_file_handler(file_formatter, backup_count))

    for noisy in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "pdfminer"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.debug("Logging ready", extra={"environment": settings.ENVIRONMENT, "json_logs": json_logs})
    return logger


logger: ProjectDeskLogger = setup_logging()
