
from typing import Dict, Tuple
from .utils import GlobalToggles, IncentiveScheme, ScenarioParameters

INF = float('inf')

# Clamp ranges applied by ScenarioParameters.normalized(); the UI reuses them for its widgets.
BOUNDS: Dict[str, Tuple[float, float]] = {
    'power_kw': (0.0, INF),
    'peak_sun_hours': (0.0, 8.0),
    'performance_ratio': (0.0, 1.0),
    'degradation': (0.0, 0.05),
    'lifetime_years': (1, 30),
    'capex': (0.0, INF),
    'opex_annual': (0.0, INF),
    'discount_rate': (1e-6, 0.8),
    'base_tariff': (0.0, INF),
    'tariff_escalation': (-0.2, 0.8),
    'volatility': (0.0, 0.5),
    'cycle_years': (2, 10),
    'self_consumption': (0.0, 1.0),
    'export_factor': (0.0, 1.0),
    'vat_rate': (0.0, 0.3),
    'duty_rate': (0.0, 0.2),
    'income_tax_rate': (0.0, 0.5),
    'deduction_years': (1, 15),
    'annual_taxable_income': (0.0, INF),
}

TARIFF_MODES = ('escalated', 'manual', 'cyclical')

# Income-tax deduction: share of net capex deductible, and cap as a share of taxable income.
DEDUCTION_SHARE = 0.5
INCOME_CAP_SHARE = 0.5

IRR_BRACKET = (-0.95, 3.0)
IRR_TOL = 1e-7
IRR_MAX_ITER = 90

# Year-1 export share above which the narrative flags oversizing.
HIGH_EXPORT_SHARE = 0.35

INCENTIVE_SCHEMES: Dict[str, IncentiveScheme] = {s.id: s for s in (
    IncentiveScheme('none', 'None'),
    IncentiveScheme('co_full', 'Colombia – full package (VAT + duty + income deduction)', True, True, True),
    IncentiveScheme('co_vat', 'Colombia – VAT exclusion', removes_vat=True),
    IncentiveScheme('co_duty', 'Colombia – import duty exemption', removes_duty=True),
    IncentiveScheme('co_income', 'Colombia – income deduction (up to 50% of investment, up to 15 years)',
                    income_deduction=True),
    IncentiveScheme('co_vat_income', 'Colombia – VAT + income deduction', removes_vat=True, income_deduction=True),
    IncentiveScheme('co_vat_duty', 'Colombia – VAT + duty', removes_vat=True, removes_duty=True),
)}

DEFAULT_TOGGLES = GlobalToggles()

PRESETS: Dict[str, ScenarioParameters] = {
    'A': ScenarioParameters(
        name='Conservative', lifetime_years=25, base_tariff=850, power_kw=6, peak_sun_hours=4.2,
        performance_ratio=0.78, degradation=0.007, self_consumption=0.8, capex=22_000_000,
        opex_annual=420_000, tariff_escalation=0.03, discount_rate=0.13, tariff_mode='escalated',
        manual_tariffs=(850, 880, 910, 940), volatility=0.1, cycle_years=4, incentive_scheme='none',
        annual_taxable_income=60_000_000, deduction_years=5,
    ),
    'B': ScenarioParameters(
        name='Base', lifetime_years=25, base_tariff=900, power_kw=8, peak_sun_hours=4.5,
        performance_ratio=0.8, degradation=0.006, self_consumption=0.85, capex=26_000_000,
        opex_annual=450_000, tariff_escalation=0.04, discount_rate=0.12, tariff_mode='escalated',
        manual_tariffs=(900, 930, 960, 1000), volatility=0.12, cycle_years=4, incentive_scheme='co_full',
        annual_taxable_income=90_000_000, deduction_years=5,
    ),
    'C': ScenarioParameters(
        name='Optimistic', lifetime_years=25, base_tariff=950, power_kw=10, peak_sun_hours=4.8,
        performance_ratio=0.82, degradation=0.005, self_consumption=0.9, capex=28_000_000,
        opex_annual=480_000, tariff_escalation=0.05, discount_rate=0.11, tariff_mode='cyclical',
        manual_tariffs=(950, 980, 1020, 1050), volatility=0.18, cycle_years=4, incentive_scheme='co_vat_income',
        annual_taxable_income=120_000_000, deduction_years=7,
    ),
}


def default_scenarios() -> Dict[str, ScenarioParameters]:
    return dict(PRESETS)
