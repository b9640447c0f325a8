# leadcrm/core/audit.py
"""
Audit log for destructive and money-related actions.
One JSON object per line in <AUDIT_LOG_DIR>/audit.log.
"""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request

from ..models.user import User
from .config import get_settings

logger = logging.getLogger(__name__)

audit_logger = logging.getLogger("audit")
audit_logger.setLevel(logging.INFO)
audit_logger.propagate = False


def _ensure_handler() -> None:
    if audit_logger.handlers:
        return
    log_dir = get_settings().audit_log_dir
    os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(os.path.join(log_dir, "audit.log"), encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(file_handler)


def client_ip(request: Optional[Request]) -> str:
    if request is None:
        return "unknown"
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def log_action(
    action: str,
    resource_type: str,
    resource_id: str,
    user: Optional[User] = None,
    request: Optional[Request] = None,
    details: Optional[dict] = None,
    status: str = "success",
) -> None:
    """
    Record an action performed on a resource.

    Args:
        action: DELETE, UPDATE, PAYMENT, SEND...
        resource_type: "client", "lead", "quote", "revenue"...
        resource_id: Identifier of the affected resource
        user: Who performed the action
        request: Used to resolve the caller's IP
        details: Extra context
        status: "success" or "failure"
    """
    _ensure_handler()
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action.upper(),
        "resource_type": resource_type,
        "resource_id": str(resource_id),
        "user": user.username if user else "anonymous",
        "user_role": user.role if user else "unknown",
        "ip_address": client_ip(request),
        "status": status,
    }
    if details:
        entry["details"] = details

    audit_logger.info(json.dumps(entry, ensure_ascii=False, default=str))
    logger.info(f"[AUDIT] {entry['action']} {resource_type}/{resource_id} by {entry['user']} ({status})")
