from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from party_cart.models.abandoned_order import AbandonedOrder


class AbandonedOrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_session(self, session_id: str) -> Optional[AbandonedOrder]:
        return self.db.query(AbandonedOrder).filter(AbandonedOrder.session_id == session_id).first()

    def upsert(self, session_id: str, fields: Dict) -> AbandonedOrder:
        """Insert or update the row for `session_id`; activity timestamps are refreshed."""
        now = datetime.now(timezone.utc)
        rec = self.get_by_session(session_id)
        if rec is None:
            rec = AbandonedOrder(session_id=session_id)
            self.db.add(rec)
        for k, v in fields.items():
            setattr(rec, k, v)
        rec.last_activity_at = now
        rec.abandoned_at = now
        self.db.flush()
        return rec
