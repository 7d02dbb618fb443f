
import math
import re
from dataclasses import dataclass, field, fields, replace
from typing import List, Dict, Any, Optional, Tuple


def to_number(x: Any, fallback: float = 0.0) -> float:
    """Coerce form input to a finite float; accepts comma decimals ('4,2')."""
    if isinstance(x, bool):
        return float(x)
    if isinstance(x, (int, float)):
        v = float(x)
    else:
        try:
            v = float(str(x).strip().replace(',', '.', 1))
        except (TypeError, ValueError):
            return fallback
    return v if math.isfinite(v) else fallback


def to_int(x: Any, fallback: int = 0) -> int:
    return int(round(to_number(x, fallback)))


def clamp(v: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, v))


def parse_price_list(text: Any) -> Tuple[float, ...]:
    """Parse '850, 880; 910\\n940' (or a sequence) into non-negative prices."""
    if text is None:
        return ()
    if isinstance(text, (list, tuple)):
        raw = [str(t) for t in text]
    else:
        raw = re.split(r'[\n,;]+', str(text))
    out = []
    for s in raw:
        s = s.strip()
        if not s:
            continue
        v = to_number(s, float('nan'))
        if math.isfinite(v):
            out.append(max(0.0, v))
    return tuple(out)


def format_pct(x: Optional[float], digits: int = 2) -> str:
    if x is None or not math.isfinite(x):
        return '—'
    return f"{x*100:.{digits}f}%"


def format_money(x: Optional[float]) -> str:
    if x is None or not math.isfinite(x):
        return '—'
    return f"$ {x:,.0f}"


def format_compact(x: Optional[float]) -> str:
    if x is None or not math.isfinite(x):
        return '—'
    for div, suffix in ((1e12, 'T'), (1e9, 'B'), (1e6, 'M'), (1e3, 'K')):
        if abs(x) >= div:
            return f"{x/div:.1f}{suffix}"
    return f"{x:.0f}"


@dataclass(frozen=True)
class GlobalToggles:
    include_tax_benefit: bool = True
    use_volatility: bool = False
    include_exports: bool = True


@dataclass(frozen=True)
class ScenarioParameters:
    name: str = 'Scenario'
    # physical
    power_kw: float = 0.0
    peak_sun_hours: float = 4.5
    performance_ratio: float = 0.8
    degradation: float = 0.006  # fractional per year
    lifetime_years: int = 25
    # economic
    capex: float = 0.0  # gross, before incentives
    opex_annual: float = 0.0
    discount_rate: float = 0.12
    # tariff
    base_tariff: float = 0.0  # per kWh
    tariff_escalation: float = 0.04
    tariff_mode: str = 'escalated'  # escalated | manual | cyclical
    manual_tariffs: Tuple[float, ...] = ()
    volatility: float = 0.1
    cycle_years: int = 4
    # consumption split
    self_consumption: float = 1.0
    export_factor: float = 0.45  # export price as a share of tariff
    # incentives
    incentive_scheme: str = 'none'
    vat_rate: float = 0.19
    duty_rate: float = 0.05
    income_tax_rate: float = 0.35
    deduction_years: int = 5
    annual_taxable_income: float = 60_000_000.0

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any]) -> 'ScenarioParameters':
        """Build a record from raw form values. Unknown keys raise TypeError."""
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(raw) - set(known))
        if unknown:
            raise TypeError(f"unknown scenario parameter(s): {', '.join(unknown)}")
        kw = {}
        for key, value in raw.items():
            f = known[key]
            if key == 'manual_tariffs':
                kw[key] = parse_price_list(value)
            elif f.type is int:
                kw[key] = to_int(value, f.default)
            elif f.type is float:
                kw[key] = to_number(value, f.default)
            else:
                kw[key] = str(value).strip() if value is not None else f.default
        return cls(**kw)

    def normalized(self) -> 'ScenarioParameters':
        """Return a copy with every numeric field clamped to its policy bounds."""
        from .config import BOUNDS, INCENTIVE_SCHEMES, TARIFF_MODES
        kw = {}
        for f in fields(self):
            if f.name not in BOUNDS:
                continue
            lo, hi = BOUNDS[f.name]
            if f.type is int:
                kw[f.name] = int(clamp(to_int(getattr(self, f.name), f.default), lo, hi))
            else:
                kw[f.name] = clamp(to_number(getattr(self, f.name), f.default), lo, hi)
        kw['manual_tariffs'] = parse_price_list(self.manual_tariffs)
        if self.tariff_mode not in TARIFF_MODES:
            kw['tariff_mode'] = 'escalated'
        if self.incentive_scheme not in INCENTIVE_SCHEMES:
            kw['incentive_scheme'] = 'none'
        return replace(self, **kw)

    def rates(self) -> 'IncentiveRates':
        return IncentiveRates(
            vat_rate=self.vat_rate, duty_rate=self.duty_rate,
            income_tax_rate=self.income_tax_rate, deduction_years=self.deduction_years,
            annual_taxable_income=self.annual_taxable_income,
        )


@dataclass(frozen=True)
class IncentiveScheme:
    id: str
    label: str
    removes_vat: bool = False
    removes_duty: bool = False
    income_deduction: bool = False


@dataclass(frozen=True)
class IncentiveRates:
    vat_rate: float = 0.19
    duty_rate: float = 0.05
    income_tax_rate: float = 0.35
    deduction_years: int = 5
    annual_taxable_income: float = 60_000_000.0


@dataclass(frozen=True)
class IncentiveResolution:
    net_capex: float
    annual_tax_benefit: Tuple[float, ...]  # index 0 = operating year 1

    def benefit_for_year(self, year: int) -> float:
        if 1 <= year <= len(self.annual_tax_benefit):
            return self.annual_tax_benefit[year - 1]
        return 0.0


@dataclass(frozen=True)
class AnnualLedgerRow:
    year: int
    tariff: float = 0.0
    generation_kwh: float = 0.0
    self_kwh: float = 0.0
    export_kwh: float = 0.0
    savings: float = 0.0
    export_revenue: float = 0.0
    opex: float = 0.0
    tax_benefit: float = 0.0
    net: float = 0.0
    cumulative: float = 0.0


@dataclass(frozen=True)
class RootResult:
    root: Optional[float]
    status: str  # converged | not_converged | no_sign_change | non_finite
    iterations: int = 0

    @property
    def converged(self) -> bool:
        return self.status == 'converged'


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    net_capex: float
    ledger: Tuple[AnnualLedgerRow, ...]
    npv: float
    irr: Optional[float]
    payback_year: Optional[int]
    first_year_return: Optional[float]
    export_share_y1: float
    lcoe: Optional[float]
    generation_total_kwh: float
    conclusions: Tuple[str, ...] = ()

    @property
    def lifetime_years(self) -> int:
        return len(self.ledger) - 1

    @property
    def cash_flows(self) -> List[float]:
        return [r.net for r in self.ledger]


@dataclass(frozen=True)
class Comparison:
    results: Dict[str, ScenarioResult]
    series: Tuple[Dict[str, float], ...]
    export_deltas: Dict[str, float] = field(default_factory=dict)
