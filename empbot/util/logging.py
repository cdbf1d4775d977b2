"""
Structured operation logging for the webhook service.
Message text is truncated before it reaches the log stream.
"""

import logging
from typing import Any, Dict, List

class StructuredLogger:
    """Structured logger for webhook, binding, note and reply operations."""

    def __init__(self, name: str = "empbot"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "rejected"):
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_webhook_batch(self, event_count: int, failed: int = 0, status: str = "success"):
        """Log the outcome of one webhook request."""
        self.log_operation("webhook.batch", status, {"events": event_count, "failed": failed})

    def log_binding(self, user_id: str, emp_id: str, rebind: bool = False):
        """Log a binding upsert."""
        details = {"user_id": user_id, "emp_id": emp_id, "rebind": rebind}
        self.log_operation("binding.upsert", "success", details)

    def log_note(self, user_id: str, emp_id: str, note_id: str, message: str = None):
        """Log an appended note."""
        details = {"user_id": user_id, "emp_id": emp_id, "note_id": note_id}
        if message is not None:
            details["message"] = message[:50] + "..." if len(message) > 50 else message

        self.log_operation("note.append", "success", details)

    def log_reply(self, user_id: str, intent: str, reply_type: str, status: str = "success"):
        """Log an outbound reply."""
        details = {"user_id": user_id, "intent": intent, "reply_type": reply_type}
        self.log_operation("reply.send", status, details)

    def log_event_failure(self, index: int, user_id: str, error: BaseException):
        """Log an event that raised during batch processing."""
        details = {
            "index": index,
            "user_id": user_id,
            "error_type": type(error).__name__,
            "error": str(error)[:100]
        }
        self.log_operation("webhook.event", "failed", details)

    def log_signature_check(self, status: str, reason: str = ""):
        """Log a signature validation decision."""
        self.log_operation("webhook.signature", status, {"reason": reason} if reason else None)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)

# Global logger instance
logger = StructuredLogger()

def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize webhook payloads before logging them."""
    if sensitive_fields is None:
        sensitive_fields = ['text', 'message', 'replyToken', 'secret', 'privateKey']

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
