from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.dependencies import get_db
from app.schemas.product import ProductCreate, ProductRead, ProductUpdate
from app.services.inventory_service import (
    DuplicateSkuError,
    count_products,
    create_product,
    delete_product,
    get_product,
    list_categories,
    list_products,
    update_product,
)

router = APIRouter(prefix="/products", tags=["Products"])


def _get_or_404(db, product_id):
    product = get_product(db, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product


@router.get("", response_model=List[ProductRead])
def read_products(
    response: Response,
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, alias="lowStock"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    db: Session = Depends(get_db),
):
    response.headers["X-Total-Count"] = str(count_products(db, category=category, low_stock=low_stock))
    return list_products(
        db,
        category=category,
        low_stock=low_stock,
        offset=(page - 1) * page_size,
        limit=page_size,
    )


@router.get("/categories", response_model=List[str])
def read_categories(db: Session = Depends(get_db)):
    return list_categories(db)


@router.get("/{product_id}", response_model=ProductRead)
def read_product(product_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, product_id)


@router.post("", response_model=ProductRead, status_code=201)
def add_product(payload: ProductCreate, db: Session = Depends(get_db)):
    try:
        return create_product(db, **payload.model_dump())
    except DuplicateSkuError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put("/{product_id}", response_model=ProductRead)
def edit_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    product = _get_or_404(db, product_id)
    try:
        return update_product(db, product, **payload.model_dump(exclude_unset=True))
    except DuplicateSkuError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/{product_id}", status_code=204)
def remove_product(product_id: int, db: Session = Depends(get_db)):
    delete_product(db, _get_or_404(db, product_id))
