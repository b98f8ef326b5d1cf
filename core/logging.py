# PATH: core/logging.py
"""
Structured JSON logging for SEALEDARB.

All logs include:
- timestamp (ISO 8601)
- level
- logger
- message
- context (block_number, commitment_hash, profit, etc.)

Contextual fields are passed only via extra={"context": {...}}.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Global context that gets added to all log entries
_global_context: dict[str, Any] = {}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Output format:
    {
        "timestamp": "2026-01-04T12:00:00.000Z",
        "level": "INFO",
        "logger": "sealedarb.commit_reveal",
        "message": "Commitment revealed",
        "context": {
            "commitment_hash": "0xabc...",
            "block_number": 12,
            "profit": 10000000000000000
        }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {}
        context.update(_global_context)

        if hasattr(record, "context") and record.context:
            context.update(record.context)

        if record.exc_info:
            context["exception"] = self.formatException(record.exc_info)

        if context:
            log_entry["context"] = context

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.getMessage()}"

        if hasattr(record, "context") and record.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in list(record.context.items())[:3])
            if len(record.context) > 3:
                ctx_str += f", ... (+{len(record.context) - 3} more)"
            base += f" | {ctx_str}"

        return base


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds context to all log entries.
    """

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        # Merge adapter context with call context
        extra = kwargs.get("extra", {})
        context = {**self.extra, **extra.get("context", {})}

        kwargs["extra"] = {"context": context}
        return msg, kwargs


def set_global_context(**kwargs: Any) -> None:
    """
    Set global context that gets added to all log entries.

    Example:
        set_global_context(mode="commit-reveal", scenario="triangular")
    """
    _global_context.update(kwargs)


def clear_global_context() -> None:
    """Clear global logging context."""
    _global_context.clear()


def get_logger(name: str, **context: Any) -> ContextAdapter:
    """
    Get a logger with optional default context.

    Args:
        name: Logger name (e.g., "sealedarb.executor")
        **context: Default context for all log entries from this logger

    Returns:
        ContextAdapter with structured logging

    Example:
        logger = get_logger("sealedarb.commit_reveal", contract="0xabc...")
        logger.info("Committed", extra={"context": {"block_number": 12}})
    """
    logger = logging.getLogger(name)
    return ContextAdapter(logger, context)


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: str | None = None,
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON formatting (recommended for production)
        log_file: Optional file path for logging
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    formatter = JSONFormatter() if json_output else ConsoleFormatter()

    # stderr keeps stdout clean for CLI JSON output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def log_commitment(
    logger: ContextAdapter,
    action: str,
    commitment_hash: str,
    committer: str,
    block_number: int,
    **extra: Any,
) -> None:
    """Log a commitment lifecycle transition with standard context."""
    logger.info(
        f"Commitment {action}: {commitment_hash[:10]}...",
        extra={
            "context": {
                "action": action,
                "commitment_hash": commitment_hash,
                "committer": committer,
                "block_number": block_number,
                **extra,
            }
        },
    )


def log_execution(
    logger: ContextAdapter,
    mode: str,
    asset: str,
    amount_in: int,
    profit: int,
    hops: int,
    **extra: Any,
) -> None:
    """Log a successful arbitrage execution with standard context."""
    logger.info(
        f"Execution: {mode} | profit={profit}",
        extra={
            "context": {
                "mode": mode,
                "asset": asset,
                "amount_in": amount_in,
                "profit": profit,
                "hops": hops,
                **extra,
            }
        },
    )


def log_error(
    logger: ContextAdapter,
    error_code: str,
    message: str,
    **extra: Any,
) -> None:
    """Log a rejected call with standard context."""
    logger.warning(
        f"[{error_code}] {message}",
        extra={
            "context": {
                "error_code": error_code,
                **extra,
            }
        },
    )
