"""
Slab based income tax for the old and new Indian regimes.

The old regime allows capped deductions (80C, 80D, housing and education loan
interest, other) up to 5L in total; the new regime ignores deductions. A
three-tier surcharge applies to the old regime above 50L, and 4% health and
education cess applies to base tax plus surcharge in both.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Mapping, Optional

from app.core.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")

OLD_REGIME = "old"
NEW_REGIME = "new"
REGIMES = (OLD_REGIME, NEW_REGIME)

REGIME_DESCRIPTIONS = {
    OLD_REGIME: "Old Regime (with deductions)",
    NEW_REGIME: "New Regime (without most deductions)",
}

CESS_RATE = Decimal("0.04")
TOTAL_DEDUCTION_CAP = Decimal("500000")


@dataclass(frozen=True)
class TaxSlab:
    start: Decimal
    end: Optional[Decimal]  # None for the open top bracket
    rate: Decimal
    description: str


def _slab(start, end, rate, description) -> TaxSlab:
    return TaxSlab(
        start=Decimal(start),
        end=Decimal(end) if end is not None else None,
        rate=Decimal(rate),
        description=description,
    )


TAX_SLABS = {
    OLD_REGIME: (
        _slab(0, 250000, "0", "Nil (0-2.5L)"),
        _slab(250000, 500000, "0.05", "5% (2.5L-5L)"),
        _slab(500000, 750000, "0.10", "10% (5L-7.5L)"),
        _slab(750000, 1000000, "0.15", "15% (7.5L-10L)"),
        _slab(1000000, 1250000, "0.20", "20% (10L-12.5L)"),
        _slab(1250000, 1500000, "0.25", "25% (12.5L-15L)"),
        _slab(1500000, None, "0.30", "30% (>15L)"),
    ),
    NEW_REGIME: (
        _slab(0, 300000, "0", "Nil (0-3L)"),
        _slab(300000, 600000, "0.05", "5% (3L-6L)"),
        _slab(600000, 900000, "0.10", "10% (6L-9L)"),
        _slab(900000, 1200000, "0.15", "15% (9L-12L)"),
        _slab(1200000, 1500000, "0.20", "20% (12L-15L)"),
        _slab(1500000, None, "0.30", "30% (>15L)"),
    ),
}

# (threshold on taxable income, rate), highest first; old regime only
SURCHARGE_TIERS = (
    (Decimal("10000000"), Decimal("0.15")),
    (Decimal("7500000"), Decimal("0.10")),
    (Decimal("5000000"), Decimal("0.05")),
)

# name -> (limit or None when uncapped, description)
DEDUCTION_RULES = {
    "section80C": (Decimal("150000"), "Investments (PF, ELSS, LIC, etc)"),
    "section80D": (Decimal("25000"), "Medical Insurance Premium"),
    "housingLoanInterest": (Decimal("200000"), "Interest on Housing Loan"),
    "educationLoanInterest": (None, "Interest on Education Loan"),
    "other": (None, "Other Deductions"),
}


@dataclass
class DeductionLine:
    name: str
    amount: Decimal
    allowed: Decimal
    limit: Optional[Decimal]
    description: str


@dataclass
class SlabLine:
    start: Decimal
    end: Optional[Decimal]
    rate: Decimal
    description: str
    taxable_amount: Decimal
    tax_amount: Decimal


@dataclass
class TaxBreakdown:
    regime: str
    annual_income: Decimal
    deductions: List[DeductionLine] = field(default_factory=list)
    total_deductions: Decimal = ZERO
    taxable_income: Decimal = ZERO
    slabs: List[SlabLine] = field(default_factory=list)
    base_tax: Decimal = ZERO
    surcharge_rate: Decimal = ZERO
    surcharge: Decimal = ZERO
    cess: Decimal = ZERO
    total_tax: Decimal = ZERO
    monthly_tax: Decimal = ZERO
    effective_rate: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "regime": {"name": self.regime, "description": REGIME_DESCRIPTIONS[self.regime]},
            "annual_income": self.annual_income,
            "deductions": {
                line.name: {
                    "amount": line.amount,
                    "allowed": line.allowed,
                    "max_limit": line.limit,
                    "description": line.description,
                }
                for line in self.deductions
            },
            "total_deductions": self.total_deductions,
            "taxable_income": self.taxable_income,
            "tax_breakdown": [
                {
                    "bracket_start": line.start,
                    "bracket_end": line.end,
                    "tax_rate": line.rate,
                    "description": line.description,
                    "taxable_amount": line.taxable_amount,
                    "tax_amount": line.tax_amount,
                }
                for line in self.slabs
            ],
            "tax": {
                "base_tax": self.base_tax,
                "surcharge": {
                    "rate": self.surcharge_rate * 100,
                    "amount": self.surcharge,
                    "applicable": self.surcharge > 0,
                },
                "cess": {"rate": CESS_RATE * 100, "amount": self.cess, "description": "Health & Education Cess"},
                "total": self.total_tax,
                "monthly": self.monthly_tax,
            },
            "effective_rate": self.effective_rate,
        }


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def validate_regime(regime: str) -> str:
    if regime not in REGIMES:
        raise ValidationError(
            detail=f"Invalid tax regime. Allowed values: {', '.join(REGIMES)}",
            field="taxRegime",
            value=regime,
        )
    return regime


def allowed_deductions(deductions: Optional[Mapping[str, object]], regime: str) -> List[DeductionLine]:
    deductions = deductions or {}
    lines = []
    for name, (limit, description) in DEDUCTION_RULES.items():
        amount = max(_to_decimal(deductions.get(name)), ZERO)
        if regime != OLD_REGIME:
            allowed = ZERO
        elif limit is not None:
            allowed = min(amount, limit)
        else:
            allowed = amount
        lines.append(DeductionLine(name=name, amount=amount, allowed=allowed, limit=limit, description=description))
    return lines


def slab_tax(taxable_income: Decimal, slabs) -> List[SlabLine]:
    """Tax each bracket's overlap with the income, stopping in the bracket that contains it."""
    lines = []
    for slab in slabs:
        if taxable_income <= slab.start:
            break
        upper = taxable_income if slab.end is None else min(taxable_income, slab.end)
        amount = upper - slab.start
        lines.append(SlabLine(
            start=slab.start,
            end=slab.end,
            rate=slab.rate,
            description=slab.description,
            taxable_amount=amount,
            tax_amount=amount * slab.rate,
        ))
        if slab.end is None or taxable_income <= slab.end:
            break
    return lines


def surcharge_rate(taxable_income: Decimal, regime: str) -> Decimal:
    if regime != OLD_REGIME:
        return ZERO
    for threshold, rate in SURCHARGE_TIERS:
        if taxable_income > threshold:
            return rate
    return ZERO


def calculate_tax(annual_income, deductions: Optional[Mapping[str, object]] = None, regime: str = OLD_REGIME) -> TaxBreakdown:
    validate_regime(regime)
    annual_income = _to_decimal(annual_income)
    if annual_income < 0:
        raise ValidationError(detail="Income cannot be negative", field="income", value=str(annual_income))

    deduction_lines = allowed_deductions(deductions, regime)
    total_deductions = min(sum((line.allowed for line in deduction_lines), ZERO), TOTAL_DEDUCTION_CAP)
    taxable_income = max(annual_income - total_deductions, ZERO)

    slabs = slab_tax(taxable_income, TAX_SLABS[regime])
    base_tax = sum((line.tax_amount for line in slabs), ZERO)

    rate = surcharge_rate(taxable_income, regime)
    surcharge = base_tax * rate
    cess = (base_tax + surcharge) * CESS_RATE
    total_tax = base_tax + surcharge + cess

    effective_rate = total_tax / annual_income * 100 if annual_income > 0 else ZERO

    return TaxBreakdown(
        regime=regime,
        annual_income=_money(annual_income),
        deductions=deduction_lines,
        total_deductions=_money(total_deductions),
        taxable_income=_money(taxable_income),
        slabs=[
            SlabLine(
                start=line.start,
                end=line.end,
                rate=line.rate,
                description=line.description,
                taxable_amount=_money(line.taxable_amount),
                tax_amount=_money(line.tax_amount),
            )
            for line in slabs
        ],
        base_tax=_money(base_tax),
        surcharge_rate=rate,
        surcharge=_money(surcharge),
        cess=_money(cess),
        total_tax=_money(total_tax),
        monthly_tax=_money(total_tax / 12),
        effective_rate=_money(effective_rate),
    )


def compare_regimes(annual_income, deductions: Optional[Mapping[str, object]] = None) -> Dict[str, object]:
    """Both regimes side by side with the cheaper one recommended."""
    results = {regime: calculate_tax(annual_income, deductions, regime) for regime in REGIMES}
    old_total = results[OLD_REGIME].total_tax
    new_total = results[NEW_REGIME].total_tax
    recommended = OLD_REGIME if old_total < new_total else NEW_REGIME
    return {
        "old": results[OLD_REGIME],
        "new": results[NEW_REGIME],
        "recommended": recommended,
        "savings": abs(old_total - new_total),
    }


def estimate_monthly_income_tax(monthly_salary) -> Decimal:
    """Old-regime slab tax on the annualised salary, per month, without cess or deductions."""
    annual = _to_decimal(monthly_salary) * 12
    base_tax = sum((line.tax_amount for line in slab_tax(annual, TAX_SLABS[OLD_REGIME])), ZERO)
    return _money(base_tax / 12)
