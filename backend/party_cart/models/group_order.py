from party_cart.db import Base
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, func


class GroupOrder(Base):
    """An order that other customers can join through its share token."""

    __tablename__ = "group_orders"
    id = Column(Integer, primary_key=True, index=True)
    share_token = Column(String(64), unique=True, nullable=False, index=True)
    order_number = Column(String(32), nullable=True)
    customer_name = Column(String(255), nullable=True)
    buyer_last_name = Column(String(128), nullable=True)
    delivery_date = Column(String(32), nullable=True)
    delivery_time = Column(String(64), nullable=True)
    delivery_address = Column(JSON, nullable=True)
    is_group_order = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
