# farmlog/routers/work_logs.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from ..database import SessionLocal
from ..errors import MissingOwnerError, WorkLogError
from ..form_state import QUICK_TEMPLATES, WorkLogForm
from ..reconciliation import delete_work_log
from ..reference_data import load_existing, load_reference_data
from ..repository import DocumentRepository
from ..schemas import OwnerContext, QuickTemplate, ReferenceData, ValidationReport, WorkLogDraft, WorkLogSaved

router = APIRouter(prefix="/api/work-logs", tags=["WorkLogs"])


def get_repository() -> DocumentRepository:
    return DocumentRepository(SessionLocal)


def get_owner(
    x_owner_id: Optional[str] = Header(None),
    x_owner_name: Optional[str] = Header(None),
    x_owner_email: Optional[str] = Header(None),
) -> OwnerContext:
    if not x_owner_id:
        raise HTTPException(status_code=MissingOwnerError.status_code, detail=MissingOwnerError().message)
    return OwnerContext(uid=x_owner_id, display_name=x_owner_name or "", email=x_owner_email or "")


def _raise(e: WorkLogError):
    raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/reference-data", response_model=ReferenceData)
async def reference_data(owner: OwnerContext = Depends(get_owner),
                         repo: DocumentRepository = Depends(get_repository)):
    try:
        return await load_reference_data(repo, owner)
    except WorkLogError as e:
        _raise(e)


@router.get("/templates", response_model=List[QuickTemplate])
def templates():
    return QUICK_TEMPLATES


@router.get("/{work_log_id}/draft")
async def existing_draft(work_log_id: str,
                         owner: OwnerContext = Depends(get_owner),
                         repo: DocumentRepository = Depends(get_repository)):
    try:
        draft = await load_existing(repo, work_log_id, owner)
    except WorkLogError as e:
        _raise(e)
    return draft.model_dump(by_alias=True)


@router.post("/validate", response_model=ValidationReport)
def validate(draft: WorkLogDraft):
    return ValidationReport(errors=WorkLogForm(draft).validate())


async def _submit(repo, owner, draft, edit_id=None) -> WorkLogSaved:
    try:
        reference = await load_reference_data(repo, owner)
    except WorkLogError as e:
        _raise(e)
    form = WorkLogForm(draft)
    outcome = await form.submit(repo, owner, reference, edit_id=edit_id)
    if not outcome.ok:
        _raise(outcome.failure)
    return WorkLogSaved(id=outcome.work_log_id, message=form.message)


@router.post("", response_model=WorkLogSaved, status_code=201)
async def create_work_log(draft: WorkLogDraft,
                          owner: OwnerContext = Depends(get_owner),
                          repo: DocumentRepository = Depends(get_repository)):
    return await _submit(repo, owner, draft)


@router.put("/{work_log_id}", response_model=WorkLogSaved)
async def update_work_log(work_log_id: str, draft: WorkLogDraft,
                          owner: OwnerContext = Depends(get_owner),
                          repo: DocumentRepository = Depends(get_repository)):
    try:
        await load_existing(repo, work_log_id, owner)
    except WorkLogError as e:
        _raise(e)
    return await _submit(repo, owner, draft, edit_id=work_log_id)


@router.delete("/{work_log_id}")
async def remove_work_log(work_log_id: str,
                          owner: OwnerContext = Depends(get_owner),
                          repo: DocumentRepository = Depends(get_repository)):
    try:
        removed = await delete_work_log(repo, work_log_id, owner)
    except WorkLogError as e:
        _raise(e)
    return {"status": "deleted", "id": work_log_id, "derived_removed": removed}
