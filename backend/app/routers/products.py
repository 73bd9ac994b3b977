from fastapi import APIRouter

from app.core.database import SesDep
from app.schemas import ProductCreate, ProductRead
from app.services import directory, repository

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=list[ProductRead])
def list_products(ses: SesDep):
    return repository.list_products(ses)


@router.post("", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, ses: SesDep):
    return directory.create_product(ses, payload)
