from fastapi import APIRouter

from app.core import config
from app.core.database import SesDep
from app.schemas import ProductionBatchCreate, ProductionBatchRead
from app.services import movements, repository

router = APIRouter(prefix="/api/production-batches", tags=["production"])


@router.get("", response_model=list[ProductionBatchRead])
def list_batches(ses: SesDep):
    # most recent rows only
    return repository.list_production_batches(ses, limit=config.PRODUCTION_BATCHES_LIMIT)


@router.post("", response_model=ProductionBatchRead, status_code=201)
def create_batch(payload: ProductionBatchCreate, ses: SesDep):
    return movements.create_production_batch(ses, payload)
