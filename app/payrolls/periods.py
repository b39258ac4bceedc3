import calendar
from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True, order=True)
class PayrollPeriod:
    """A calendar month a payroll is computed for. Orders chronologically."""

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.month}")

    @classmethod
    def of(cls, month: int, year: int) -> "PayrollPeriod":
        return cls(year=int(year), month=int(month))

    @classmethod
    def from_date(cls, value: date) -> "PayrollPeriod":
        return cls(year=value.year, month=value.month)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-01"

    @property
    def last_day(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.days_in_month:02d}"

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def day(self, day_of_month: int) -> str:
        return f"{self.year:04d}-{self.month:02d}-{day_of_month:02d}"

    def is_future(self, today: date) -> bool:
        return self > PayrollPeriod.from_date(today)

    def is_current(self, today: date) -> bool:
        return self == PayrollPeriod.from_date(today)

    def is_past(self, today: date) -> bool:
        return self < PayrollPeriod.from_date(today)

    def precedes(self, other: "PayrollPeriod") -> bool:
        return self < other

    def previous(self) -> "PayrollPeriod":
        if self.month == 1:
            return PayrollPeriod(year=self.year - 1, month=12)
        return PayrollPeriod(year=self.year, month=self.month - 1)

    def __str__(self) -> str:
        return f"{self.month}/{self.year}"


def joined_by(joining_date: Optional[date], period: PayrollPeriod) -> bool:
    """Employees with no joining date on file count as always employed."""
    if joining_date is None:
        return True
    return not period.precedes(PayrollPeriod.from_date(joining_date))
