from decimal import Decimal

from src.hr_admin.hr_admin.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.hr_admin.hr_admin.records.model import PayrollItem


def test_total_is_items_plus_bonus_minus_deduction():
    calc = StandardPayrollCalculator()
    items = [PayrollItem(description="Salary", amount=Decimal("1000")), PayrollItem(description="Meal", amount=Decimal("0.125"))]
    assert calc.total_amount(items, bonus=Decimal("10"), deduction=Decimal("5")) == Decimal("1005.13")


def test_total_without_items():
    assert StandardPayrollCalculator().total_amount([], bonus=0, deduction=0) == Decimal("0.00")


def test_working_days():
    calc = StandardPayrollCalculator()
    assert calc.working_days("02", 2026) == 20  # 28 days
    assert calc.working_days("03", 2026) == 23  # 31 days


def test_prorate_clamps_days():
    calc = StandardPayrollCalculator()
    assert calc.prorate(Decimal("2300"), days_worked=20, working_days=23) == Decimal("2000.00")
    assert calc.prorate(Decimal("2300"), days_worked=30, working_days=23) == Decimal("2300.00")
    assert calc.prorate(Decimal("2300"), days_worked=-1, working_days=23) == Decimal("0.00")
    assert calc.prorate(Decimal("2300"), days_worked=5, working_days=0) == Decimal("0.00")
