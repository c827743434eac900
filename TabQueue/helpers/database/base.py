from typing import Optional, Protocol

from TabQueue.helpers.ext_utils import MissingContextId

KEY_PREFIX = "queue_data_"


def queue_key(context_id) -> str:
    if context_id is None or context_id == "":
        raise MissingContextId()
    return f"{KEY_PREFIX}{context_id}"


class QueueStore(Protocol):
    """
    Common queue persistence interface.

    All backends MUST implement these methods
    with the same behavior.

    Rules:
    - one record per context, keyed by ``queue_key(context_id)``
    - records are the queue wire form (camelCase dict)
    - only the coordinator writes
    - nothing survives a full session restart
    """

    async def load(self, context_id: str) -> Optional[dict]:
        """
        Return the stored record or None.
        """
        ...

    async def save(self, context_id: str, record: dict) -> dict:
        """
        Replace the stored record, return what was written.
        """
        ...

    async def delete(self, context_id: str):
        """
        Drop the record (no-op when missing).
        """
        ...
