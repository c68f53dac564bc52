from __future__ import annotations

import logging
from typing import Any


class TurnLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prefixes messages with trace/session/intent context."""

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        trace_id = self.extra.get("trace_id") or "-"
        session_id = self.extra.get("session_id") or "-"
        intent = self.extra.get("intent") or "-"
        prefix = f"trace_id={trace_id} session_id={session_id} intent={intent}"
        return f'{prefix} msg="{msg}"', kwargs


def get_turn_logger(
    logger: logging.Logger | str,
    *,
    trace_id: str | None,
    session_id: str | None,
    intent: Any = None,
) -> TurnLoggerAdapter:
    base_logger = logging.getLogger(logger) if isinstance(logger, str) else logger
    return TurnLoggerAdapter(
        base_logger,
        {
            "trace_id": trace_id or "-",
            "session_id": session_id or "-",
            "intent": getattr(intent, "value", intent) or "-",
        },
    )
