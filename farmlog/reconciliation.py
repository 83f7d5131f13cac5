# farmlog/reconciliation.py
"""
Delete-then-recreate reconciliation of derived records.

Updates never diff: every derived record linked to a work-log is removed and
the coordinator writes the current one again, with a new id and timestamps.
"""

import logging
from typing import Optional

from .errors import DocumentNotFound, PersistenceError, WorkLogNotFound
from .fanout import gather_all
from .reference_data import WORK_LOGS, owned_by
from .schemas import DERIVED_COLLECTIONS, OwnerContext

logger = logging.getLogger(__name__)


async def _remove_linked(repository, collection: str, work_log_id: str) -> int:
    docs = await repository.query(collection, "workLogId", work_log_id)
    if docs:
        await gather_all(*(repository.delete(collection, doc["id"]) for doc in docs))
    return len(docs)


async def reconcile(repository, work_log_id: str) -> int:
    """
    Remove every fertilizer, seed and pesticide use linked to ``work_log_id``.

    The three collections are cleared concurrently. Returns how many records
    were removed; calling it again removes nothing and is not an error.
    """
    try:
        counts = await gather_all(
            *(_remove_linked(repository, name, work_log_id) for name in DERIVED_COLLECTIONS)
        )
    except Exception as e:
        logger.exception("removing derived records of %s failed", work_log_id)
        raise PersistenceError(str(e)) from e
    removed = sum(counts)
    logger.debug("removed %d derived records of %s", removed, work_log_id)
    return removed


async def delete_work_log(repository, work_log_id: str, owner: Optional[OwnerContext] = None) -> int:
    """
    Delete a work-log together with its derived records. With ``owner`` set,
    a work-log of another owner is reported as not found and left alone.
    """
    try:
        doc = await repository.get(WORK_LOGS, work_log_id)
    except Exception as e:
        logger.exception("failed to fetch work log %s", work_log_id)
        raise PersistenceError(str(e)) from e
    if doc is None or not owned_by(doc, owner):
        logger.warning("work log %s not found for delete", work_log_id)
        raise WorkLogNotFound()

    removed = await reconcile(repository, work_log_id)
    try:
        await repository.delete(WORK_LOGS, work_log_id)
    except DocumentNotFound:
        # deleted by another session in the meantime
        logger.warning("work log %s vanished before delete", work_log_id)
    except Exception as e:
        logger.exception("deleting work log %s failed", work_log_id)
        raise PersistenceError(str(e)) from e
    logger.info("work log %s deleted with %d derived records", work_log_id, removed)
    return removed
