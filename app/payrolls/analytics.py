"""
Analytics aggregator.

A pure reducer over already fetched payroll snapshots; no database access.
Every percentage guards its denominator: shares of an empty total are 0.0,
period-over-period deltas against a missing or zero base are None.
"""

import calendar
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from app.payrolls.models import PaymentStatus

UNKNOWN = "Unknown"


@dataclass
class PayrollSnapshot:
    employee_id: str
    month: int
    year: int
    name: str = UNKNOWN
    department: str = UNKNOWN
    position: str = UNKNOWN
    basic_salary: float = 0.0
    gross_salary: float = 0.0
    net_salary: float = 0.0
    total_deductions: float = 0.0
    income_tax: float = 0.0
    provident_fund: float = 0.0
    other_deductions: float = 0.0
    bonus: float = 0.0
    incentives: float = 0.0
    overtime_hours: float = 0.0
    overtime_amount: float = 0.0
    payment_status: str = PaymentStatus.PENDING

    @property
    def period_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def ordinal(self) -> int:
        return self.year * 12 + self.month

    @classmethod
    def from_payroll(cls, payroll) -> "PayrollSnapshot":
        details = payroll.employee_details or {}
        deductions = {name: float(value or 0) for name, value in payroll.deductions.items()}
        return cls(
            employee_id=str(payroll.employee_id),
            month=payroll.month,
            year=payroll.year,
            name=details.get("name") or UNKNOWN,
            department=details.get("department") or UNKNOWN,
            position=details.get("position") or UNKNOWN,
            basic_salary=float(payroll.basic_salary or 0),
            gross_salary=float(payroll.gross_salary or 0),
            net_salary=float(payroll.net_salary or 0),
            total_deductions=float(payroll.total_deductions or 0),
            income_tax=deductions["income_tax"],
            provident_fund=deductions["provident_fund"],
            other_deductions=(
                deductions["health_insurance"]
                + deductions["professional_tax"]
                + deductions["loan_repayment"]
                + deductions["other"]
            ),
            bonus=float(payroll.bonus or 0),
            incentives=float(payroll.bonus_incentives or 0) + float(payroll.bonus_commission or 0),
            overtime_hours=float(payroll.overtime_hours or 0),
            overtime_amount=float(payroll.overtime_amount or 0),
            payment_status=payroll.payment_status,
        )


def share(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


def change(current: float, base: Optional[float]) -> Optional[float]:
    if not base:
        return None
    return (current - base) / base * 100


def _group(snapshots: List[PayrollSnapshot], attribute: str, total_net: float) -> Dict[str, dict]:
    groups: Dict[str, dict] = OrderedDict()
    for snapshot in snapshots:
        key = getattr(snapshot, attribute)
        group = groups.setdefault(key, {
            "records": 0,
            "total": 0.0,
            "gross_salary": 0.0,
            "basic_salary": 0.0,
            "deductions": 0.0,
            "bonuses": 0.0,
            "_employees": set(),
        })
        group["records"] += 1
        group["total"] += snapshot.net_salary
        group["gross_salary"] += snapshot.gross_salary
        group["basic_salary"] += snapshot.basic_salary
        group["deductions"] += snapshot.total_deductions
        group["bonuses"] += snapshot.bonus
        group["_employees"].add(snapshot.employee_id)

    for group in groups.values():
        group["employees"] = len(group.pop("_employees"))
        group["average"] = group["total"] / group["records"]
        group["cost_share"] = share(group["total"], total_net)
    return dict(groups)


@dataclass
class _MonthBucket:
    month: int
    year: int
    total: float = 0.0
    gross_salary: float = 0.0
    taxes: float = 0.0
    bonus: float = 0.0
    deductions: float = 0.0
    overtime: float = 0.0
    records: int = 0
    employees: set = field(default_factory=set)

    @property
    def headcount(self) -> int:
        return len(self.employees)


def salary_trend(snapshots: Iterable[PayrollSnapshot]) -> List[dict]:
    buckets: Dict[str, _MonthBucket] = {}
    for snapshot in snapshots:
        bucket = buckets.get(snapshot.period_key)
        if bucket is None:
            bucket = buckets[snapshot.period_key] = _MonthBucket(month=snapshot.month, year=snapshot.year)
        bucket.total += snapshot.net_salary
        bucket.gross_salary += snapshot.gross_salary
        bucket.taxes += snapshot.income_tax
        bucket.bonus += snapshot.bonus
        bucket.deductions += snapshot.total_deductions
        bucket.overtime += snapshot.overtime_amount
        bucket.records += 1
        bucket.employees.add(snapshot.employee_id)

    keys = sorted(buckets)
    trend = []
    for index, key in enumerate(keys):
        current = buckets[key]
        previous = buckets[keys[index - 1]] if index > 0 else None
        year_ago = buckets.get(f"{current.year - 1:04d}-{current.month:02d}")

        trend.append({
            "period": key,
            "month_name": calendar.month_name[current.month],
            "month": current.month,
            "year": current.year,
            "quarter": f"Q{(current.month - 1) // 3 + 1} {current.year}",
            "total_salary": current.total,
            "gross_salary": current.gross_salary,
            "average_salary": current.total / current.records,
            "headcount": current.headcount,
            "records": current.records,
            "taxes": current.taxes,
            "bonus": current.bonus,
            "deductions": current.deductions,
            "overtime": current.overtime,
            "mom": {
                "total_salary": change(current.total, previous.total),
                "headcount": change(current.headcount, previous.headcount),
            } if previous else None,
            "yoy": {
                "total_salary": change(current.total, year_ago.total),
                "headcount": change(current.headcount, year_ago.headcount),
            } if year_ago else None,
        })
    return trend


def payment_status_distribution(snapshots: List[PayrollSnapshot]) -> dict:
    counts = {status: 0 for status in PaymentStatus.ALL}
    for snapshot in snapshots:
        counts[snapshot.payment_status] = counts.get(snapshot.payment_status, 0) + 1
    total = len(snapshots)
    return {
        "counts": counts,
        "percentages": {status: share(count, total) for status, count in counts.items()},
    }


def employee_performance(snapshots: List[PayrollSnapshot]) -> List[dict]:
    by_employee: Dict[str, List[PayrollSnapshot]] = OrderedDict()
    for snapshot in snapshots:
        by_employee.setdefault(snapshot.employee_id, []).append(snapshot)

    performance = []
    for employee_id, records in by_employee.items():
        latest = max(records, key=lambda s: s.ordinal)
        performance.append({
            "id": employee_id,
            "name": latest.name,
            "department": latest.department,
            "position": latest.position,
            "latest_salary": latest.net_salary,
            "average_salary": sum(s.net_salary for s in records) / len(records),
            "overtime_hours": sum(s.overtime_hours for s in records),
            "bonus_total": sum(s.bonus for s in records),
            "records": len(records),
        })
    return performance


def aggregate(snapshots: Iterable[PayrollSnapshot]) -> dict:
    snapshots = list(snapshots)
    count = len(snapshots)

    total_net = sum(s.net_salary for s in snapshots)
    total_gross = sum(s.gross_salary for s in snapshots)
    total_basic = sum(s.basic_salary for s in snapshots)
    total_deductions = sum(s.total_deductions for s in snapshots)
    tax_deductions = sum(s.income_tax for s in snapshots)
    pf_deductions = sum(s.provident_fund for s in snapshots)
    other_deductions = sum(s.other_deductions for s in snapshots)
    bonus_distributed = sum(s.bonus for s in snapshots)
    overtime_amount = sum(s.overtime_amount for s in snapshots)

    by_department = _group(snapshots, "department", total_net)
    by_position = _group(snapshots, "position", total_net)
    for group in by_position.values():
        # Positions only report the net view
        for key in ("gross_salary", "basic_salary", "deductions", "bonuses"):
            group.pop(key)

    allocation_total = total_basic + total_deductions + bonus_distributed + overtime_amount
    deduction_breakdown = {
        "tax": share(tax_deductions, total_deductions),
        "pf": share(pf_deductions, total_deductions),
        "others": share(other_deductions, total_deductions),
    }
    trend = salary_trend(snapshots)
    statuses = payment_status_distribution(snapshots)

    return {
        "total_employees": len({s.employee_id for s in snapshots}),
        "total_records": count,
        "total_payroll": total_net,
        "avg_salary": total_net / count if count else 0.0,
        "total_gross_salary": total_gross,
        "total_net_salary": total_net,
        "total_basic_salary": total_basic,
        "total_deductions": total_deductions,
        "tax_deductions": tax_deductions,
        "pf_deductions": pf_deductions,
        "other_deductions": other_deductions,
        "bonus_distributed": bonus_distributed,
        "incentives_distributed": sum(s.incentives for s in snapshots),
        "overtime_hours_total": sum(s.overtime_hours for s in snapshots),
        "overtime_amount_total": overtime_amount,
        "salary_by_department": by_department,
        "salary_by_position": by_position,
        "allocation_by_component": {
            "basic_salary": {"amount": total_basic, "percentage": share(total_basic, allocation_total)},
            "deductions": {
                "amount": total_deductions,
                "percentage": share(total_deductions, allocation_total),
                "breakdown": {"tax": tax_deductions, "pf": pf_deductions, "other": other_deductions},
            },
            "bonus": {"amount": bonus_distributed, "percentage": share(bonus_distributed, allocation_total)},
            "overtime": {"amount": overtime_amount, "percentage": share(overtime_amount, allocation_total)},
        },
        "deduction_breakdown": deduction_breakdown,
        "salary_trend": trend,
        "payment_status_distribution": statuses,
        "employee_performance": employee_performance(snapshots),
        "chart_data": {
            "salary_distribution": [
                {"department": name, "total": group["total"], "percentage": group["cost_share"]}
                for name, group in by_department.items()
            ],
            "payment_status": [
                {"status": status, "percentage": percentage}
                for status, percentage in statuses["percentages"].items()
            ],
            "salary_trends": [
                {"period": entry["period"], "salary": entry["total_salary"], "employees": entry["headcount"]}
                for entry in trend
            ],
            "deduction_ratio": [
                {"type": "Tax", "percentage": deduction_breakdown["tax"]},
                {"type": "Provident Fund", "percentage": deduction_breakdown["pf"]},
                {"type": "Other", "percentage": deduction_breakdown["others"]},
            ],
        },
    }
