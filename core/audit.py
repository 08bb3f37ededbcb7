# core/audit.py

import json
from typing import Any, Optional

from core.logging_config import logger
from core.supabase_client import get_supabase_client


def _encode(state: Any) -> Optional[str]:
    if state is None:
        return None
    return json.dumps(state, default=str)


def log_audit(
    entity_type: str,
    entity_id: str,
    action: str,
    performed_by: str,
    previous_state: Any = None,
    new_state: Any = None,
    reason: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> Optional[dict]:
    """
    Record an audit log entry.

    Audit failures are logged and swallowed: they must never fail the
    request that triggered them.
    """
    entry = {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "action": action,
        "performed_by": performed_by,
        "previous_state": _encode(previous_state),
        "new_state": _encode(new_state),
        "reason": reason,
        "metadata": metadata or {},
    }

    try:
        client = get_supabase_client()
        if client is None:
            logger.warning(f"Audit skipped (no Supabase): {entity_type}/{entity_id} {action}")
            return None
        result = client.table("audit_logs").insert(entry, returning="representation").execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Audit log failed for {entity_type}/{entity_id} {action}: {e}")
        return None
