from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional


def log_market_event(
    event_type: str,
    component: str,
    severity: str = "INFO",
    ts: Optional[int] = None,
    **fields: Any,
) -> None:
    """Emit a single-line JSON log record for a market event.

    Keys: event, component, severity, ts, schema_version plus any extra fields.
    """
    try:
        logger = logging.getLogger(f"fanclub_market.{component}")
        payload: Dict[str, Any] = {
            "event": str(event_type),
            "component": str(component),
            "severity": severity,
            "ts": int(ts if ts is not None else int(time.time() * 1000)),
            "schema_version": "v1",
        }
        payload.update(fields)
        level = logging.getLevelName(severity)
        if not isinstance(level, int):
            level = logging.INFO
        logger.log(level, json.dumps(payload, separators=(",", ":"), default=str))
    except Exception:
        # Logging must never throw
        pass
