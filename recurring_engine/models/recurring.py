"""
Recurring expense database model.
"""

import uuid
from datetime import datetime
import enum
from sqlalchemy import Column, String, Boolean, DateTime, Date, Enum, Integer, Text, Index

from recurring_engine.database import Base
from recurring_engine.schemas.recurring import CategorySnapshot, Schedule, build_schedule


class Frequency(str, enum.Enum):
    """Recurrence frequency enumeration."""
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class RecurringExpense(Base):
    """A rule from which expense transactions are generated."""

    __tablename__ = "recurring_expenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    amount = Column(String(32), nullable=False)  # Decimal string, never a float

    # Denormalized category snapshot, not a foreign key
    category_id = Column(String(36), nullable=False, index=True)
    category_name = Column(String(100), nullable=False)
    category_icon = Column(String(50), nullable=False)
    category_color = Column(String(7), nullable=False)

    note = Column(Text, nullable=True)
    frequency = Column(Enum(Frequency), nullable=False)
    day_of_week = Column(Integer, nullable=True)  # 0-6, 0 = Sunday
    day_of_month = Column(Integer, nullable=True)  # 1-31
    month_of_year = Column(Integer, nullable=True)  # 1-12
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # Inclusive
    last_generated_date = Column(Date, nullable=True)  # High-water mark
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_recurring_active", "is_active"),
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

    @property
    def schedule(self) -> Schedule:
        """Rebuild the typed schedule from the nullable columns."""
        return build_schedule(
            self.frequency,
            day_of_week=self.day_of_week,
            day_of_month=self.day_of_month,
            month_of_year=self.month_of_year,
        )

    @schedule.setter
    def schedule(self, schedule: Schedule) -> None:
        self.frequency = Frequency(schedule.frequency)
        self.day_of_week = getattr(schedule, "day_of_week", None)
        self.day_of_month = getattr(schedule, "day_of_month", None)
        self.month_of_year = getattr(schedule, "month_of_year", None)

    def __repr__(self) -> str:
        return f"<RecurringExpense {self.id} {self.frequency} {self.amount}>"
