import logging
from typing import Any

audit_logger = logging.getLogger("audit")

def log_actor_action(actor_id: Any, action: str, entity: str, entity_id: Any = None):
    """Log roster mutations for audit trail"""
    audit_logger.info(f"User {actor_id} performed {action} on {entity} {entity_id if entity_id is not None else ''}".rstrip())
