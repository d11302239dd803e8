from datetime import datetime, timezone

from party_cart.db import Base
from sqlalchemy import JSON, Column, DateTime, Float, Integer, String


def _utcnow():
    return datetime.now(timezone.utc)


class AbandonedOrder(Base):
    __tablename__ = "abandoned_orders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(128), unique=True, nullable=False, index=True)
    cart_items = Column(JSON, nullable=False, default=list)
    customer_email = Column(String(255), nullable=True)
    customer_name = Column(String(255), nullable=True)
    customer_phone = Column(String(64), nullable=True)
    delivery_address = Column(JSON, nullable=True)
    subtotal = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0)
    affiliate_code = Column(String(64), nullable=True, index=True)
    last_activity_at = Column(DateTime(timezone=True), default=_utcnow)
    abandoned_at = Column(DateTime(timezone=True), default=_utcnow)
