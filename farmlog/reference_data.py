# farmlog/reference_data.py
"""
Lookup lists for the work-log form and the draft of an existing work-log.
"""

import datetime
import logging
from typing import Optional

from pydantic import ValidationError

from .errors import LoadError, WorkLogNotFound
from .fanout import gather_all
from .coercion import format_number
from .schemas import (
    FarmField, FarmUser, Fertilizer, OwnerContext, Pesticide, ReferenceData, Seed, WorkLogDraft,
)

logger = logging.getLogger(__name__)

WORK_LOGS = "workLogs"

# collection -> (model, filtered by owner)
LOOKUPS = {
    "fields": (FarmField, True),
    "users": (FarmUser, False),
    "fertilizers": (Fertilizer, True),
    "seeds": (Seed, True),
    "pesticides": (Pesticide, True),
}

_STRING_KEYS = (
    "fieldId", "workType", "details",
    "fertilizerId", "fertilizerMethod",
    "seedId", "seedMethod",
    "pesticideId", "targetPest", "pesticideMethod", "weather",
)
_NUMBER_KEYS = (
    "workHours", "harvestAmount", "wasteAmount",
    "fertilizerAmount", "seedAmount",
    "dilutionRate", "pesticideAmount", "temperature", "windSpeed",
)


async def _fetch(repository, collection, owner):
    model, scoped = LOOKUPS[collection]
    if scoped:
        docs = await repository.query(collection, "userId", owner.uid)
    else:
        docs = await repository.query(collection)
    return tuple(model.model_validate(doc) for doc in docs)


async def load_reference_data(repository, owner: OwnerContext) -> ReferenceData:
    """Fetch the five lookup lists concurrently; one failure fails the whole load."""
    try:
        results = await gather_all(*(_fetch(repository, name, owner) for name in LOOKUPS))
    except Exception as e:
        logger.exception("reference data load failed for owner %s", owner.uid)
        raise LoadError() from e
    data = ReferenceData(**dict(zip(LOOKUPS, results)))
    logger.debug(
        "reference data for %s: %d fields, %d users, %d fertilizers, %d seeds, %d pesticides",
        owner.uid, len(data.fields), len(data.users), len(data.fertilizers),
        len(data.seeds), len(data.pesticides),
    )
    return data


def _stored_date(value) -> str:
    if not value:
        return datetime.date.today().isoformat()
    return str(value)[:10]


def document_to_draft(doc: dict) -> WorkLogDraft:
    values = {key: doc.get(key) or "" for key in _STRING_KEYS}
    values.update({key: format_number(doc.get(key)) for key in _NUMBER_KEYS})
    values["date"] = _stored_date(doc.get("date"))
    values["workers"] = list(doc.get("workers") or [])
    values["fertilizerUnit"] = doc.get("fertilizerUnit") or "kg"
    values["pesticideUnit"] = doc.get("pesticideUnit") or "L"
    return WorkLogDraft.model_validate(values)


def owned_by(doc: dict, owner: Optional[OwnerContext]) -> bool:
    """True unless an owner is given and the work-log belongs to someone else."""
    return owner is None or doc.get("userId") == owner.uid


async def load_existing(repository, work_log_id: str, owner: Optional[OwnerContext] = None) -> WorkLogDraft:
    """
    Draft of a stored work-log. With ``owner`` set, a work-log of another
    owner is reported as not found.
    """
    try:
        doc = await repository.get(WORK_LOGS, work_log_id)
    except Exception as e:
        logger.exception("failed to fetch work log %s", work_log_id)
        raise LoadError() from e
    if doc is None:
        logger.warning("work log %s not found", work_log_id)
        raise WorkLogNotFound()
    if not owned_by(doc, owner):
        logger.warning("work log %s requested by %s, owned by another user", work_log_id, owner.uid)
        raise WorkLogNotFound()
    try:
        return document_to_draft(doc)
    except ValidationError as e:
        logger.error("work log %s does not map to a draft: %s", work_log_id, e)
        raise LoadError() from e


class EditDraftLoader:
    """
    Loads an existing work-log into a form for editing.

    If ``cancel()`` runs while the fetch is in flight (the hosting view went
    away) the result is dropped on arrival and the form is not touched.
    """

    def __init__(self, repository, form, owner: Optional[OwnerContext] = None):
        self.repository = repository
        self.form = form
        self.owner = owner
        self.cancelled = False
        self.not_found = False

    def cancel(self):
        self.cancelled = True

    async def load(self, work_log_id: str) -> bool:
        try:
            draft = await load_existing(self.repository, work_log_id, self.owner)
        except WorkLogNotFound as e:
            if not self.cancelled:
                self.not_found = True
                self.form.error = e.message
            return False
        except LoadError as e:
            if not self.cancelled:
                self.form.error = e.message
            return False
        if self.cancelled:
            logger.debug("discarding draft of %s, loader cancelled", work_log_id)
            return False
        self.form.draft = draft
        return True
