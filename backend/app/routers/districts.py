"""District directory: ``/api/districts``."""

from __future__ import annotations

from fastapi import APIRouter

from app.core.database import SesDep
from app.routers._mutation import mutation_response
from app.schemas import DistrictIn, DistrictRead
from app.services import directory, repository

router = APIRouter(prefix="/api/districts", tags=["districts"])


@router.get("", response_model=list[DistrictRead])
def list_districts(ses: SesDep):
    return repository.list_districts(ses)


@router.post("", response_model=DistrictRead, status_code=201)
def create_district(payload: DistrictIn, ses: SesDep):
    return directory.create_district(ses, payload)


@router.put("/{district_id}", response_model=DistrictRead)
def rename_district(district_id: str, payload: DistrictIn, ses: SesDep):
    return mutation_response(directory.rename_district(ses, district_id, payload))


@router.delete("/{district_id}")
def delete_district(district_id: str, ses: SesDep):
    """Stores of the district stay, unassigned."""
    unassigned = directory.delete_district(ses, district_id)
    return {"success": True, "unassignedStores": unassigned}
