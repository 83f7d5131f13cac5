# farmlog/routers/lookups.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from ..reference_data import LOOKUPS
from ..repository import DocumentRepository
from ..schemas import OwnerContext
from .work_logs import get_owner, get_repository

router = APIRouter(prefix="/api/lookups", tags=["Lookups"])


def _lookup(collection: str):
    if collection not in LOOKUPS:
        raise HTTPException(status_code=404, detail=f"unknown lookup collection '{collection}'")
    return LOOKUPS[collection]


@router.post("/{collection}", status_code=201)
async def add_lookup(collection: str,
                     payload: Dict[str, Any] = Body(...),
                     owner: OwnerContext = Depends(get_owner),
                     repo: DocumentRepository = Depends(get_repository)):
    model, scoped = _lookup(collection)
    data = {k: v for k, v in payload.items() if k != "id"}
    if scoped:
        data["userId"] = owner.uid
    try:
        model.model_validate({"id": "new", **data})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
    data["createdAt"] = repo.server_timestamp()
    data["updatedAt"] = repo.server_timestamp()
    doc_id = await repo.insert(collection, data)
    return {"id": doc_id}


@router.get("/{collection}")
async def list_lookups(collection: str,
                       owner: OwnerContext = Depends(get_owner),
                       repo: DocumentRepository = Depends(get_repository)):
    _, scoped = _lookup(collection)
    if scoped:
        return await repo.query(collection, "userId", owner.uid)
    return await repo.query(collection)
