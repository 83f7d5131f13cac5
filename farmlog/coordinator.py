# farmlog/coordinator.py
"""
Composite write of one work-log and its derived compliance record.

The primary record and the derived records are written in two stages with
no cross-document transaction. If the derived stage fails after the primary
write succeeded, the primary record stays without its derived record; the
failure is logged and reported as a persistence error, nothing is rolled back.
"""

import logging
from enum import Enum
from typing import List, Optional

from .errors import MissingOwnerError, PersistenceError, WorkLogError
from .fanout import gather_all
from .coercion import to_number
from .reconciliation import reconcile
from .reference_data import WORK_LOGS
from .schemas import (
    DerivedRecord, FertilizerUse, FertilizingPayload, OwnerContext, PestControlPayload,
    PesticideUse, ReferenceData, SeedingPayload, SeedUse, WorkLogDraft, WorkLogRecord, WorkType,
)

logger = logging.getLogger(__name__)


class SaveMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


def build_payload(draft: WorkLogDraft):
    """The payload variant selected by the draft's work type, or None."""
    if draft.work_type == WorkType.FERTILIZING.value and draft.fertilizer_id:
        return FertilizingPayload(
            fertilizer_id=draft.fertilizer_id,
            fertilizer_amount=to_number(draft.fertilizer_amount),
            fertilizer_unit=draft.fertilizer_unit,
            fertilizer_method=draft.fertilizer_method,
        )
    if draft.work_type == WorkType.SEEDING.value and draft.seed_id:
        return SeedingPayload(
            seed_id=draft.seed_id,
            seed_amount=to_number(draft.seed_amount),
            seed_method=draft.seed_method,
        )
    if draft.work_type == WorkType.PEST_CONTROL.value and draft.pesticide_id:
        return PestControlPayload(
            pesticide_id=draft.pesticide_id,
            target_pest=draft.target_pest,
            dilution_rate=to_number(draft.dilution_rate),
            pesticide_amount=to_number(draft.pesticide_amount),
            pesticide_unit=draft.pesticide_unit,
            pesticide_method=draft.pesticide_method,
            weather=draft.weather,
            temperature=to_number(draft.temperature),
            wind_speed=to_number(draft.wind_speed),
        )
    return None


def build_work_log(draft: WorkLogDraft, owner: OwnerContext, reference: ReferenceData) -> WorkLogRecord:
    field = reference.field(draft.field_id)
    workers = reference.workers(draft.workers)
    return WorkLogRecord(
        user_id=owner.uid,
        date=draft.date,
        field_id=draft.field_id,
        field_name=field.name if field else "",
        work_type=draft.work_type,
        workers=list(draft.workers),
        worker_names=[w.name for w in workers],
        details=draft.details,
        work_hours=to_number(draft.work_hours),
        harvest_amount=to_number(draft.harvest_amount),
        waste_amount=to_number(draft.waste_amount),
        payload=build_payload(draft),
    )


def _seed_label(seed) -> str:
    if seed is None:
        return ""
    if seed.variety:
        return f"{seed.name} ({seed.variety})"
    return seed.name


def build_derived_record(
    record: WorkLogRecord, owner: OwnerContext, reference: ReferenceData, work_log_id: str
) -> Optional[DerivedRecord]:
    """Snapshot of the derived record for the record's payload, None without one."""
    payload = record.payload
    if payload is None:
        return None
    common = dict(
        date=record.date,
        field_id=record.field_id,
        field_name=record.field_name,
        user_id=owner.uid,
        notes=f"作業日誌より自動作成 (作業ID: {work_log_id})",
        work_log_id=work_log_id,
    )
    if isinstance(payload, FertilizingPayload):
        fertilizer = reference.fertilizer(payload.fertilizer_id)
        logger.debug("fertilizer snapshot for %s: %r", work_log_id, fertilizer)
        return FertilizerUse(
            fertilizer_id=payload.fertilizer_id,
            fertilizer_name=fertilizer.name if fertilizer else "",
            applied_by=owner.uid,
            applied_by_name=owner.label,
            amount=payload.fertilizer_amount,
            unit=payload.fertilizer_unit,
            method=payload.fertilizer_method,
            nitrogen=(fertilizer.nitrogen_content if fertilizer else None) or 0,
            phosphorus=(fertilizer.phosphorus_content if fertilizer else None) or 0,
            potassium=(fertilizer.potassium_content if fertilizer else None) or 0,
            **common,
        )
    if isinstance(payload, SeedingPayload):
        return SeedUse(
            seed_id=payload.seed_id,
            seed_name=_seed_label(reference.seed(payload.seed_id)),
            planted_by=owner.uid,
            planted_by_name=owner.label,
            amount=payload.seed_amount,
            method=payload.seed_method,
            **common,
        )
    pesticide = reference.pesticide(payload.pesticide_id)
    return PesticideUse(
        pesticide_id=payload.pesticide_id,
        pesticide_name=pesticide.name if pesticide else "",
        target_pest=payload.target_pest,
        applied_by=owner.uid,
        applied_by_name=owner.label,
        dilution_rate=payload.dilution_rate,
        amount=payload.pesticide_amount,
        unit=payload.pesticide_unit,
        method=payload.pesticide_method,
        weather=payload.weather,
        temperature=payload.temperature,
        wind_speed=payload.wind_speed,
        **common,
    )


async def create_derived_records(
    repository, record: WorkLogRecord, owner: OwnerContext, reference: ReferenceData, work_log_id: str
) -> List[str]:
    item = build_derived_record(record, owner, reference, work_log_id)
    derived = [item] if item is not None else []
    writes = []
    for item in derived:
        doc = item.model_dump(by_alias=True)
        doc["createdAt"] = repository.server_timestamp()
        doc["updatedAt"] = repository.server_timestamp()
        writes.append(repository.insert(item.collection, doc))
    if not writes:
        return []
    return list(await gather_all(*writes))


async def _write(repository, record, owner, reference, mode, work_log_id):
    doc = record.to_document()
    doc["updatedAt"] = repository.server_timestamp()
    if mode == SaveMode.CREATE:
        doc["createdAt"] = repository.server_timestamp()
        work_log_id = await repository.insert(WORK_LOGS, doc)
    else:
        await repository.update(WORK_LOGS, work_log_id, doc)
        await reconcile(repository, work_log_id)
    try:
        await create_derived_records(repository, record, owner, reference, work_log_id)
    except Exception:
        logger.error(
            "work log %s saved but its derived record was not; the work log has no "
            "matching compliance record until it is saved again", work_log_id,
        )
        raise
    return work_log_id


async def save_work_log(
    repository,
    draft: WorkLogDraft,
    owner: Optional[OwnerContext],
    reference: ReferenceData,
    mode: SaveMode = SaveMode.CREATE,
    work_log_id: Optional[str] = None,
) -> str:
    """
    Persist the draft as a work-log and rebuild its derived record.

    Create inserts a new work-log (creation and update timestamps) and writes
    the derived record for its payload. Update overwrites the existing
    work-log, removes every derived record linked to it, then writes the new
    one. Returns the work-log id.
    """
    if owner is None or not owner.uid:
        raise MissingOwnerError()
    if mode == SaveMode.UPDATE and not work_log_id:
        raise ValueError("update needs the id of the work log")

    record = build_work_log(draft, owner, reference)
    try:
        work_log_id = await _write(repository, record, owner, reference, mode, work_log_id)
    except WorkLogError:
        raise
    except Exception as e:
        logger.exception("saving work log failed (%s, id=%s)", mode.value, work_log_id)
        raise PersistenceError(str(e)) from e
    logger.info("work log %s %sd (%s)", work_log_id, mode.value, record.work_type)
    return work_log_id
