from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from pharmapos.config import get_settings
from pharmapos.models.product import Product
from pharmapos.models.sale import Sale, SaleItem
from pharmapos.models.stock_movement import StockMovement
from pharmapos.models.user import User

settings = get_settings()

UNKNOWN_PRODUCT = "Unknown product"


class ReportService:
    """
    Read-only aggregates over sales and the stock ledger.

    Every method returns plain data shaped for the report schemas; charting
    is left to the client.
    """

    def __init__(self, db: Session):
        self.db = db

    def sales_report(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> dict:
        """Store-wide totals, profit and per-attendant breakdown."""
        sales = (
            self._sales_between(date_from, date_to)
            .options(
                selectinload(Sale.attendant),
                selectinload(Sale.items).selectinload(SaleItem.product),
            )
            .all()
        )

        total_sales_value = 0.0
        total_profit = 0.0
        by_employee: dict[str, dict] = {}
        detailed = []

        for sale in sales:
            cost = sum(item.product.purchase_price * item.quantity for item in sale.items)
            profit = sale.total - cost
            total_sales_value += sale.total
            total_profit += profit

            employee = by_employee.setdefault(sale.attendant.name, {"total": 0.0, "count": 0})
            employee["total"] += sale.total
            employee["count"] += 1

            detailed.append({
                "id": sale.id,
                "created_at": sale.created_at,
                "attendant_name": sale.attendant.name,
                "total": sale.total,
                "profit": profit,
                "payment_method": sale.payment_method,
                "item_count": len(sale.items),
            })

        return {
            "total_sales_value": total_sales_value,
            "total_profit": total_profit,
            "sales_by_employee": by_employee,
            "sale_count": len(sales),
            "detailed_sales": detailed,
        }

    def my_sales(
        self,
        user: User,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> dict:
        """The calling attendant's own sales."""
        sales = (
            self._sales_between(date_from, date_to)
            .filter(Sale.attendant_id == user.id)
            .options(selectinload(Sale.items))
            .all()
        )
        return {
            "total_sales_value": sum(sale.total for sale in sales),
            "sale_count": len(sales),
            "detailed_sales": [
                {
                    "id": sale.id,
                    "created_at": sale.created_at,
                    "total": sale.total,
                    "payment_method": sale.payment_method,
                    "item_count": len(sale.items),
                }
                for sale in sales
            ],
        }

    def stock_movements(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        product_id: Optional[int] = None,
    ) -> list[StockMovement]:
        query = self.db.query(StockMovement).options(
            selectinload(StockMovement.product),
            selectinload(StockMovement.user),
        )
        if date_from:
            query = query.filter(StockMovement.created_at >= date_from)
        if date_to:
            query = query.filter(StockMovement.created_at <= date_to)
        if product_id:
            query = query.filter(StockMovement.product_id == product_id)
        return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).all()

    def stock_alerts(self, today: Optional[date] = None) -> dict:
        """Products at or under their minimum, and in-stock products close to expiry."""
        today = today or date.today()
        horizon = today + timedelta(days=settings.NEAR_EXPIRY_DAYS)

        low_stock = (
            self.db.query(Product)
            .filter(Product.stock_quantity <= Product.min_stock_quantity)
            .order_by(Product.stock_quantity.asc())
            .all()
        )
        near_expiry = (
            self.db.query(Product)
            .filter(
                Product.expiry_date >= today,
                Product.expiry_date <= horizon,
                Product.stock_quantity > 0,
            )
            .order_by(Product.expiry_date.asc())
            .all()
        )
        return {"low_stock_products": low_stock, "near_expiry_products": near_expiry}

    def stock_dashboard(self, today: Optional[date] = None) -> list[dict]:
        today = today or date.today()
        horizon = today + timedelta(days=settings.NEAR_EXPIRY_DAYS)

        total = self.db.query(func.count(Product.id)).scalar()
        low = (
            self.db.query(func.count(Product.id))
            .filter(Product.stock_quantity <= Product.min_stock_quantity)
            .scalar()
        )
        near_expiry = (
            self.db.query(func.count(Product.id))
            .filter(Product.expiry_date >= today, Product.expiry_date <= horizon)
            .scalar()
        )
        return [
            {"name": "Total products", "value": total},
            {"name": "Low stock", "value": low},
            {"name": "Near expiry", "value": near_expiry},
        ]

    def most_sold_products(self) -> list[dict]:
        quantity = func.sum(SaleItem.quantity).label("quantity_sold")
        rows = (
            self.db.query(SaleItem.product_id, quantity)
            .group_by(SaleItem.product_id)
            .order_by(quantity.desc())
            .limit(settings.TOP_N)
            .all()
        )
        names = self._product_names([row.product_id for row in rows])
        return [
            {"name": names.get(row.product_id, UNKNOWN_PRODUCT), "quantity_sold": row.quantity_sold or 0}
            for row in rows
        ]

    def sales_by_category(self) -> list[dict]:
        value = func.sum(SaleItem.quantity * SaleItem.price_at_sale).label("total_sales")
        rows = (
            self.db.query(Product.category, value)
            .join(SaleItem, SaleItem.product_id == Product.id)
            .group_by(Product.category)
            .order_by(value.desc())
            .limit(settings.TOP_N)
            .all()
        )
        return [{"name": row.category, "total_sales": row.total_sales or 0.0} for row in rows]

    def recent_stock_movements(self, now: Optional[datetime] = None) -> list[dict]:
        """Net stock change per product over the recent window."""
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=settings.RECENT_MOVEMENT_DAYS)

        net = func.sum(StockMovement.quantity_change).label("net_change")
        rows = (
            self.db.query(StockMovement.product_id, net)
            .filter(StockMovement.created_at >= since)
            .group_by(StockMovement.product_id)
            .order_by(net.desc())
            .all()
        )
        names = self._product_names([row.product_id for row in rows])
        return [
            {"name": names.get(row.product_id, UNKNOWN_PRODUCT), "net_change": row.net_change or 0}
            for row in rows
        ]

    def _sales_between(self, date_from: Optional[datetime], date_to: Optional[datetime]):
        query = self.db.query(Sale)
        if date_from:
            query = query.filter(Sale.created_at >= date_from)
        if date_to:
            query = query.filter(Sale.created_at <= date_to)
        return query.order_by(Sale.created_at.desc(), Sale.id.desc())

    def _product_names(self, product_ids: list[int]) -> dict[int, str]:
        if not product_ids:
            return {}
        rows = self.db.query(Product.id, Product.name).filter(Product.id.in_(product_ids)).all()
        return {row.id: row.name for row in rows}
