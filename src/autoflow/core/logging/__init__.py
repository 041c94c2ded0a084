from .context import get_log_context, log_context, reset_context, set_context
from .json_formatter import log_event
from .setup import configure_logging

__all__ = ["configure_logging", "get_log_context", "set_context", "reset_context", "log_context", "log_event"]
