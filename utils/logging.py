"""
Structured logging utilities

Human-readable console output plus JSON file output, with request context
(Discord user, command, draft session, trace id) carried in a contextvar so it
follows a command or timer check across awaits.
"""
import contextvars
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Union

# Context variable for request tracking across async calls
log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('log_context', default={})

# LogRecord attributes that are not user supplied `extra` fields
_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName'
}


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    def format(self, record) -> str:
        log_obj: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_obj['exception'] = {
                'type': exc_type.__name__ if exc_type else 'Unknown',
                'message': str(exc_value) if exc_value else 'No message',
                'traceback': self.formatException(record.exc_info)
            }

        context = log_context.get({})
        if context:
            log_obj['context'] = dict(context)
            if 'trace_id' in context:
                log_obj['trace_id'] = context['trace_id']

        extra = {
            key: _json_safe(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS
        }
        if extra:
            log_obj['extra'] = extra

        return json.dumps(log_obj, ensure_ascii=False)


class ContextualLogger:
    """
    Logger wrapper that adds operation timing and keyword context.

    Keyword arguments passed to the log methods end up in the record's
    `extra` and therefore in the JSON log file.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)
        self._start_time: Optional[float] = None

    def start_operation(self, operation_name: Optional[str] = None) -> str:
        """
        Start timing an operation and generate a trace ID.

        Returns:
            Trace ID for this operation
        """
        self._start_time = time.time()
        trace_id = uuid.uuid4().hex[:8]

        context = log_context.get({}).copy()
        context['trace_id'] = trace_id
        if operation_name:
            context['operation'] = operation_name
        log_context.set(context)

        return trace_id

    def end_operation(self, trace_id: str, operation_result: str = "completed") -> None:
        """Log the final duration of an operation and drop its context."""
        if self._start_time is None:
            self.warning("end_operation called without corresponding start_operation")
            return

        self.info(f"Operation {operation_result}",
                  trace_id=trace_id,
                  operation_result=operation_result)

        context = log_context.get({}).copy()
        context.pop('operation', None)
        if context.get('trace_id') == trace_id:
            context.pop('trace_id', None)
        log_context.set(context)

        self._start_time = None

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs) -> None:
        if self._start_time is not None:
            kwargs['duration_ms'] = int((time.time() - self._start_time) * 1000)
        self.logger.log(level, message, exc_info=exc_info, extra=kwargs)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[Exception] = None, **kwargs):
        """
        Log error message with optional exception information.

        Args:
            message: Error message
            error: Exception to attach (adds traceback)
            **kwargs: Additional context
        """
        if error:
            kwargs['error'] = {'type': type(error).__name__, 'message': str(error)}
        self._log(logging.ERROR, message, exc_info=error is not None, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback and context."""
        self._log(logging.ERROR, message, exc_info=True, **kwargs)


def set_discord_context(
    interaction: Optional[Any] = None,
    user_id: Optional[Union[str, int]] = None,
    guild_id: Optional[Union[str, int]] = None,
    command: Optional[str] = None,
    **additional_context
):
    """
    Set Discord-specific context for logging.

    Args:
        interaction: Discord interaction (user/guild/channel/command are extracted)
        user_id: Discord user ID
        guild_id: Discord guild ID
        command: Command name (e.g., '/draft-status')
        **additional_context: Any additional context to include
    """
    context = log_context.get({}).copy()

    if interaction:
        context['user_id'] = str(interaction.user.id)
        if interaction.guild:
            context['guild_id'] = str(interaction.guild.id)
        if interaction.channel:
            context['channel_id'] = str(interaction.channel.id)
        if getattr(interaction, 'command', None):
            context['command'] = f"/{interaction.command.name}"

    if user_id:
        context['user_id'] = str(user_id)
    if guild_id:
        context['guild_id'] = str(guild_id)
    if command:
        context['command'] = command

    context.update(additional_context)
    log_context.set(context)


def set_draft_context(session_id: Optional[str] = None, team_id: Optional[str] = None, **additional_context):
    """Attach draft session/team identifiers to subsequent log records."""
    context = log_context.get({}).copy()
    if session_id:
        context['draft_session_id'] = session_id
    if team_id:
        context['team_id'] = team_id
    context.update(additional_context)
    log_context.set(context)


def clear_context():
    """Clear the current logging context."""
    log_context.set({})


def get_contextual_logger(logger_name: str) -> ContextualLogger:
    """Get a contextual logger instance (typically for __name__)."""
    return ContextualLogger(logger_name)
