from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_broadcaster, get_db
from app.schemas.inventory import (
    DashboardRead,
    InventoryReportRead,
    MinimumStockRequest,
    StockAdjustmentRequest,
    StockEventRead,
    StockUpdateRequest,
)
from app.schemas.product import ProductRead
from app.services.inventory_service import (
    adjust_stock,
    dashboard,
    inventory_report,
    low_stock_products,
    set_minimum_stock,
    update_stock,
)
from app.services.notification_service import StockEventBroadcaster

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("/dashboard", response_model=DashboardRead)
def read_dashboard(db: Session = Depends(get_db)):
    return dashboard(db)


@router.get("/low-stock", response_model=List[ProductRead])
def read_low_stock(db: Session = Depends(get_db)):
    return low_stock_products(db)


@router.get("/report", response_model=InventoryReportRead)
def read_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        return inventory_report(db, start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put("/{product_id}/stock", response_model=StockEventRead)
def change_stock(
    product_id: int,
    payload: StockUpdateRequest,
    db: Session = Depends(get_db),
    broadcaster: StockEventBroadcaster = Depends(get_broadcaster),
):
    event = update_stock(db, product_id, payload.new_stock, payload.reason, broadcaster)
    if event is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return event


@router.post("/{product_id}/adjust", response_model=StockEventRead)
def change_stock_by(
    product_id: int,
    payload: StockAdjustmentRequest,
    db: Session = Depends(get_db),
    broadcaster: StockEventBroadcaster = Depends(get_broadcaster),
):
    event = adjust_stock(db, product_id, payload.adjustment, payload.reason, broadcaster)
    if event is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return event


@router.put("/{product_id}/minimum-stock", response_model=ProductRead)
def change_minimum_stock(
    product_id: int,
    payload: MinimumStockRequest,
    db: Session = Depends(get_db),
    broadcaster: StockEventBroadcaster = Depends(get_broadcaster),
):
    product = set_minimum_stock(db, product_id, payload.minimum_stock, broadcaster)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product
