"""Schemas describing the outcome of a generation run."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class PatternOutcome(BaseModel):
    """What one generation run did for a single recurring expense."""
    recurring_expense_id: str
    generated: int = 0
    last_generated_date: Optional[date] = None
    capped: bool = False   # Hit the per-run safety cap, more may be due
    skipped: bool = False  # Inactive pattern passed in explicitly
    error: Optional[str] = None


class GenerationReport(BaseModel):
    as_of_date: date
    outcomes: List[PatternOutcome] = []
    aborted: bool = False

    @property
    def total_generated(self) -> int:
        return sum(o.generated for o in self.outcomes)

    @property
    def errors(self) -> List[PatternOutcome]:
        return [o for o in self.outcomes if o.error is not None]

    @property
    def capped(self) -> List[PatternOutcome]:
        return [o for o in self.outcomes if o.capped]

    def outcome_for(self, recurring_expense_id: str) -> Optional[PatternOutcome]:
        for outcome in self.outcomes:
            if outcome.recurring_expense_id == recurring_expense_id:
                return outcome
        return None
