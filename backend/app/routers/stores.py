"""Store directory: ``/api/stores``."""

from __future__ import annotations

from fastapi import APIRouter

from app.core.database import SesDep
from app.routers._mutation import mutation_response
from app.schemas import StoreCreate, StorePatch, StoreRead
from app.services import directory, repository

router = APIRouter(prefix="/api/stores", tags=["stores"])


@router.get("", response_model=list[StoreRead])
def list_stores(ses: SesDep):
    return repository.list_stores(ses)


@router.post("", response_model=StoreRead, status_code=201)
def create_store(payload: StoreCreate, ses: SesDep):
    return directory.create_store(ses, payload)


@router.patch("/{store_id}", response_model=StoreRead)
def update_store(store_id: str, patch: StorePatch, ses: SesDep):
    return mutation_response(directory.update_store(ses, store_id, patch))


@router.delete("/{store_id}")
def delete_store(store_id: str, ses: SesDep):
    directory.delete_store(ses, store_id)
    return {"success": True}
