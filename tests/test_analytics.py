"""
Factory Payroll System - Analytics Aggregator Tests
"""

import pytest

from app.payrolls.analytics import PayrollSnapshot, aggregate, change, share


def snapshot(employee_id="e1", month=5, year=2025, net=1000.0, **overrides):
    values = {
        "employee_id": employee_id,
        "month": month,
        "year": year,
        "net_salary": net,
        "gross_salary": net + 100.0,
        "basic_salary": net * 0.6,
        "total_deductions": 100.0,
    }
    values.update(overrides)
    return PayrollSnapshot(**values)


class TestEmptyInput:

    def test_zero_denominators(self):
        report = aggregate([])

        assert report["total_employees"] == 0
        assert report["avg_salary"] == 0.0
        assert report["salary_trend"] == []
        assert report["deduction_breakdown"] == {"tax": 0.0, "pf": 0.0, "others": 0.0}
        assert all(value == 0.0 for value in report["payment_status_distribution"]["percentages"].values())
        assert report["allocation_by_component"]["bonus"]["percentage"] == 0.0


class TestTotals:

    def test_headcount_counts_unique_employees(self):
        report = aggregate([
            snapshot("e1", month=4), snapshot("e1", month=5), snapshot("e2", month=5, net=3000.0),
        ])

        assert report["total_employees"] == 2
        assert report["total_records"] == 3
        assert report["total_net_salary"] == pytest.approx(5000.0)
        assert report["avg_salary"] == pytest.approx(5000.0 / 3)

    def test_deduction_breakdown(self):
        report = aggregate([
            snapshot(total_deductions=200.0, income_tax=50.0, provident_fund=100.0, other_deductions=50.0),
        ])

        assert report["deduction_breakdown"]["tax"] == pytest.approx(25.0)
        assert report["deduction_breakdown"]["pf"] == pytest.approx(50.0)
        assert report["allocation_by_component"]["deductions"]["breakdown"]["pf"] == pytest.approx(100.0)


class TestBreakdowns:

    def test_department_cost_share(self):
        report = aggregate([
            snapshot("e1", net=3000.0, department="Assembly"),
            snapshot("e2", net=1000.0, department="Packing"),
            snapshot("e3", net=1000.0, department="Packing"),
        ])
        departments = report["salary_by_department"]

        assert departments["Assembly"]["cost_share"] == pytest.approx(60.0)
        assert departments["Packing"]["records"] == 2
        assert departments["Packing"]["employees"] == 2
        assert departments["Packing"]["average"] == pytest.approx(1000.0)

    def test_position_breakdown_is_net_only(self):
        report = aggregate([snapshot(position="Welder")])
        assert set(report["salary_by_position"]["Welder"]) == {"records", "total", "employees", "average", "cost_share"}

    def test_unknown_department(self):
        report = aggregate([snapshot()])
        assert "Unknown" in report["salary_by_department"]


class TestTrend:

    def test_month_over_month_and_year_over_year(self):
        report = aggregate([
            snapshot("e1", month=5, year=2024, net=1000.0),
            snapshot("e1", month=4, year=2025, net=2000.0),
            snapshot("e1", month=5, year=2025, net=3000.0),
        ])
        trend = report["salary_trend"]

        assert [entry["period"] for entry in trend] == ["2024-05", "2025-04", "2025-05"]
        assert trend[0]["mom"] is None
        assert trend[1]["yoy"] is None
        assert trend[2]["mom"]["total_salary"] == pytest.approx(50.0)
        assert trend[2]["yoy"]["total_salary"] == pytest.approx(200.0)
        assert trend[2]["quarter"] == "Q2 2025"
        assert trend[2]["month_name"] == "May"

    def test_zero_base_gives_none(self):
        report = aggregate([
            snapshot("e1", month=4, net=0.0),
            snapshot("e1", month=5, net=500.0),
        ])
        assert report["salary_trend"][1]["mom"]["total_salary"] is None
        assert report["salary_trend"][1]["mom"]["headcount"] == pytest.approx(0.0)


class TestPaymentStatusAndPerformance:

    def test_status_distribution(self):
        report = aggregate([
            snapshot("e1", payment_status="Paid"),
            snapshot("e2", payment_status="Paid"),
            snapshot("e3", payment_status="Pending"),
            snapshot("e4", payment_status="Failed"),
        ])
        distribution = report["payment_status_distribution"]

        assert distribution["counts"]["Paid"] == 2
        assert distribution["percentages"]["Paid"] == pytest.approx(50.0)
        assert distribution["percentages"]["Processing"] == 0.0

    def test_employee_performance_uses_latest_record(self):
        report = aggregate([
            snapshot("e1", month=5, net=3000.0, name="Ravi", bonus=100.0),
            snapshot("e1", month=4, net=1000.0, name="Ravi K", bonus=50.0),
        ])
        performance = report["employee_performance"][0]

        assert performance["name"] == "Ravi"
        assert performance["latest_salary"] == pytest.approx(3000.0)
        assert performance["average_salary"] == pytest.approx(2000.0)
        assert performance["bonus_total"] == pytest.approx(150.0)
        assert performance["records"] == 2

    def test_chart_series(self):
        report = aggregate([snapshot(department="Assembly")])
        charts = report["chart_data"]

        assert charts["salary_distribution"][0]["department"] == "Assembly"
        assert charts["salary_trends"][0]["employees"] == 1
        assert [item["type"] for item in charts["deduction_ratio"]] == ["Tax", "Provident Fund", "Other"]


class TestGuards:

    def test_share(self):
        assert share(1, 0) == 0.0
        assert share(1, 4) == 25.0

    def test_change(self):
        assert change(10, None) is None
        assert change(10, 0) is None
        assert change(15, 10) == pytest.approx(50.0)
