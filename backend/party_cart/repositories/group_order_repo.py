from sqlalchemy.orm import Session
from typing import Optional
from party_cart.models.group_order import GroupOrder

class GroupOrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_share_token(self, share_token: str) -> Optional[GroupOrder]:
        return (
            self.db.query(GroupOrder)
            .filter(GroupOrder.share_token == share_token, GroupOrder.is_group_order == True)
            .first()
        )

    def create(self, share_token: str, **fields) -> GroupOrder:
        order = GroupOrder(share_token=share_token, **fields)
        self.db.add(order)
        self.db.flush()
        return order
