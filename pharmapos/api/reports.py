from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from pharmapos.database import get_db
from pharmapos.schemas.base import MAX_ID
from pharmapos.models.user import User
from pharmapos.policy import Operation, require
from pharmapos.services.report_service import ReportService
from pharmapos.schemas.report import (
    SalesReport,
    MySalesReport,
    StockMovementResponse,
    StockAlertsReport,
    DashboardCounter,
    ProductQuantity,
    CategoryTotal,
    ProductNetChange,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get(
    "/sales",
    response_model=SalesReport,
    summary="Sales report",
    description="Totals, profit and per-attendant breakdown, optionally within a date range."
)
def sales_report(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_SALES)),
):
    return ReportService(db).sales_report(date_from, date_to)


@router.get(
    "/my-sales",
    response_model=MySalesReport,
    summary="My sales",
    description="Sales recorded by the calling user, optionally within a date range."
)
def my_sales_report(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_MY_SALES)),
):
    return ReportService(db).my_sales(user, date_from, date_to)


@router.get(
    "/stock-movements",
    response_model=list[StockMovementResponse],
    summary="Stock history",
    description="Stock ledger entries, filterable by date range and product."
)
def stock_movements_report(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    product_id: Optional[int] = Query(None, alias="productId", ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_STOCK_MOVEMENTS)),
):
    return ReportService(db).stock_movements(date_from, date_to, product_id)


@router.get(
    "/stock-alerts",
    response_model=StockAlertsReport,
    summary="Stock alerts",
    description="Products at or under their minimum stock, and in-stock products close to expiry."
)
def stock_alerts_report(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_STOCK_ALERTS)),
):
    return ReportService(db).stock_alerts()


@router.get(
    "/stock-dashboard",
    response_model=list[DashboardCounter],
    summary="Stock dashboard counters",
)
def stock_dashboard(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_DASHBOARD)),
):
    return ReportService(db).stock_dashboard()


@router.get(
    "/most-sold-products",
    response_model=list[ProductQuantity],
    summary="Most sold products",
)
def most_sold_products(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_MOST_SOLD)),
):
    return ReportService(db).most_sold_products()


@router.get(
    "/sales-by-category",
    response_model=list[CategoryTotal],
    summary="Sales by category",
)
def sales_by_category(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_BY_CATEGORY)),
):
    return ReportService(db).sales_by_category()


@router.get(
    "/recent-stock-movements",
    response_model=list[ProductNetChange],
    summary="Recent net stock change",
    description="Net stock change per product over the recent window."
)
def recent_stock_movements(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.REPORT_RECENT_MOVEMENTS)),
):
    return ReportService(db).recent_stock_movements()
