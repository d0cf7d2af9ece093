"""
Expense database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Text, Index

from recurring_engine.database import Base
from recurring_engine.schemas.recurring import CategorySnapshot


class Expense(Base):
    """Expense model. Generated expenses carry the id of the pattern that produced them."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    amount = Column(String(32), nullable=False)
    category_id = Column(String(36), nullable=False)
    category_name = Column(String(100), nullable=False)
    category_icon = Column(String(50), nullable=False)
    category_color = Column(String(7), nullable=False)
    date = Column(Date, nullable=False, index=True)
    note = Column(Text, nullable=True)
    # Weak back-reference: no foreign key, deleting the pattern leaves this alone
    recurring_expense_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_expense_recurring", "recurring_expense_id"),
        Index("idx_expense_category", "category_id"),
    )

    @property
    def category(self) -> CategorySnapshot:
        return CategorySnapshot(
            id=self.category_id,
            name=self.category_name,
            icon=self.category_icon,
            color=self.category_color,
        )

    @category.setter
    def category(self, snapshot: CategorySnapshot) -> None:
        self.category_id = snapshot.id
        self.category_name = snapshot.name
        self.category_icon = snapshot.icon
        self.category_color = snapshot.color
