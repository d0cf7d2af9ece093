"""Pydantic schemas for recurring expenses."""

import calendar
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator


AMOUNT_PATTERN = re.compile(r"^\d+(\.\d+)?$")


def normalize_amount(value: Any) -> str:
    """
    Validate a positive decimal amount and return it as a string.
    The value is never converted to float.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Amount must be a positive number")
    if isinstance(value, (int, Decimal)):
        value = str(value)
    if not isinstance(value, str):
        raise ValueError("Amount must be a positive number")

    text = value.strip()
    if not AMOUNT_PATTERN.match(text):
        raise ValueError("Amount must be a positive number")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError("Amount must be a positive number")
    if amount <= 0:
        raise ValueError("Amount must be a positive number")
    return text


class CategorySnapshot(BaseModel):
    """Category fields copied onto a pattern or expense at write time."""
    id: str = Field(..., min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")


class DailySchedule(BaseModel):
    frequency: Literal["daily"] = "daily"

    class Config:
        extra = "forbid"


class WeeklySchedule(BaseModel):
    frequency: Literal["weekly"] = "weekly"
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Sunday

    class Config:
        extra = "forbid"


class MonthlySchedule(BaseModel):
    frequency: Literal["monthly"] = "monthly"
    day_of_month: int = Field(..., ge=1, le=31)

    class Config:
        extra = "forbid"


class YearlySchedule(BaseModel):
    frequency: Literal["yearly"] = "yearly"
    month_of_year: int = Field(..., ge=1, le=12)
    day_of_month: int = Field(..., ge=1, le=31)

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def check_day_exists(self) -> "YearlySchedule":
        # 2000 is a leap year, so Feb 29 passes and is clamped later
        longest = calendar.monthrange(2000, self.month_of_year)[1]
        if self.day_of_month > longest:
            raise ValueError(
                f"Day {self.day_of_month} never occurs in month {self.month_of_year}"
            )
        return self


Schedule = Annotated[
    Union[DailySchedule, WeeklySchedule, MonthlySchedule, YearlySchedule],
    Field(discriminator="frequency"),
]

schedule_adapter = TypeAdapter(Schedule)


def build_schedule(
    frequency: str,
    day_of_week: Optional[int] = None,
    day_of_month: Optional[int] = None,
    month_of_year: Optional[int] = None,
) -> Schedule:
    """Build a schedule from nullable storage columns. Raises pydantic.ValidationError."""
    data: Dict[str, Any] = {"frequency": getattr(frequency, "value", frequency)}
    if day_of_week is not None:
        data["day_of_week"] = day_of_week
    if day_of_month is not None:
        data["day_of_month"] = day_of_month
    if month_of_year is not None:
        data["month_of_year"] = month_of_year
    return schedule_adapter.validate_python(data)


class RecurringExpenseBase(BaseModel):
    amount: str
    category: CategorySnapshot
    note: str = ""
    schedule: Schedule
    start_date: date
    end_date: Optional[date] = None

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value: Any) -> str:
        return normalize_amount(value)

    @field_validator("note", mode="before")
    @classmethod
    def note_default(cls, value: Any) -> Any:
        return "" if value is None else value


class RecurringExpenseCreate(RecurringExpenseBase):

    @model_validator(mode="after")
    def check_date_range(self) -> "RecurringExpenseCreate":
        # Generation resumes from the day before the start date
        if self.start_date <= date.min:
            raise ValueError("Start date is out of range")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self


class RecurringExpenseUpdate(BaseModel):
    """Partial update. Unset fields keep their stored value."""
    amount: Optional[str] = None
    category: Optional[CategorySnapshot] = None
    note: Optional[str] = None
    schedule: Optional[Schedule] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return normalize_amount(value)


class RecurringExpenseResponse(RecurringExpenseBase):
    id: str
    last_generated_date: Optional[date] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    # Computed field added by callers
    next_occurrence: Optional[date] = None

    class Config:
        from_attributes = True
