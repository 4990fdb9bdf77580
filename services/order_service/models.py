from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from shared.config.database import Base

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column("userid", Integer, nullable=False, index=True)
    total_amount = Column("totalamount", Numeric, nullable=False) # exact sum of product prices at creation, never rounded
    order_date = Column("orderdate", DateTime(timezone=True), nullable=False, server_default=func.now())

    # `order_items` is not mapped: OrderRepository attaches the rows it loads
    # so list reads can fetch every item in one query.

class OrderItem(Base):
    __tablename__ = "orderitems"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column("orderid", Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column("productid", Integer, nullable=False)
