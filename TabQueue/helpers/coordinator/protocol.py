from enum import Enum
from typing import Optional


class MessageType(str, Enum):
    # agent -> coordinator
    GET = "GET"
    SET = "SET"
    CLEAR = "CLEAR"
    ADD_ITEM = "ADD_ITEM"
    REMOVE_ITEM = "REMOVE_ITEM"
    REORDER = "REORDER"
    SET_CURRENT = "SET_CURRENT"

    # coordinator -> agent
    SYNC = "SYNC"
    CONTEXT_ADD = "CONTEXT_ADD"


REQUEST_TYPES = frozenset(
    {
        MessageType.GET,
        MessageType.SET,
        MessageType.CLEAR,
        MessageType.ADD_ITEM,
        MessageType.REMOVE_ITEM,
        MessageType.REORDER,
        MessageType.SET_CURRENT,
    }
)

MUTATING_TYPES = REQUEST_TYPES - {MessageType.GET}


def _valid_context_id(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.strip() != ""


def resolve_context_id(message: Optional[dict], sender_context_id=None) -> Optional[str]:
    """
    Explicit ``contextId`` wins, the transport-supplied sender identity is
    the fallback. Returns None when neither is usable.
    """
    explicit = message.get("contextId") if isinstance(message, dict) else None

    if _valid_context_id(explicit):
        return str(explicit).strip()
    if _valid_context_id(sender_context_id):
        return str(sender_context_id).strip()
    return None


def parse_type(message: Optional[dict]) -> Optional[MessageType]:
    if not isinstance(message, dict):
        return None
    try:
        return MessageType(message.get("type"))
    except ValueError:
        return None


def ok_response(queue=None, with_queue: bool = True) -> dict:
    response = {"ok": True}
    if with_queue:
        response["queue"] = queue.to_dict() if queue is not None else None
    return response


def error_response(error) -> dict:
    return {"ok": False, "error": str(error) or error.__class__.__name__}


def sync_message(context_id: str, queue) -> dict:
    return {
        "type": MessageType.SYNC.value,
        "contextId": context_id,
        "queue": queue.to_dict() if queue is not None else None,
    }


def context_add_message(context_id: str, url: str, title: Optional[str] = None) -> dict:
    return {
        "type": MessageType.CONTEXT_ADD.value,
        "contextId": context_id,
        "payload": {"url": url, "title": title},
    }
