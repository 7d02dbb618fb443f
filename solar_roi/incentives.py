
import logging
from typing import List, Union
from .utils import IncentiveRates, IncentiveResolution, IncentiveScheme, clamp, to_int, to_number
from .config import BOUNDS, DEDUCTION_SHARE, INCOME_CAP_SHARE, INCENTIVE_SCHEMES

logger = logging.getLogger(__name__)


def get_scheme(scheme: Union[str, IncentiveScheme, None]) -> IncentiveScheme:
    if isinstance(scheme, IncentiveScheme):
        return scheme
    if scheme not in INCENTIVE_SCHEMES:
        logger.debug('Unknown incentive scheme %r, using none', scheme)
        return INCENTIVE_SCHEMES['none']
    return INCENTIVE_SCHEMES[scheme]


def _rate(value, name: str, fallback: float) -> float:
    lo, hi = BOUNDS[name]
    return clamp(to_number(value, fallback), lo, hi)


def net_capex(gross_capex: float, scheme: IncentiveScheme, rates: IncentiveRates) -> float:
    """Strip VAT and then import duty out of a tax-inclusive capex.

    Both are removed as gross-ups (divide by 1 + rate), so the order does not
    change the result; VAT is applied first by convention.
    """
    neto = max(0.0, to_number(gross_capex, 0.0))
    if scheme.removes_vat:
        neto = neto / (1.0 + _rate(rates.vat_rate, 'vat_rate', 0.19))
    if scheme.removes_duty:
        neto = neto / (1.0 + _rate(rates.duty_rate, 'duty_rate', 0.05))
    return neto


def income_deduction_benefits(capex_net: float, lifetime: int, rates: IncentiveRates) -> List[float]:
    """Yearly cash benefit of deducting half the net investment from taxable income.

    The deductible base is spread evenly over the deduction window, each year is
    capped at half the taxable income, and the undeducted remainder carries
    forward until the base is exhausted or the window closes.
    """
    years = int(clamp(to_int(rates.deduction_years, 5), *BOUNDS['deduction_years']))
    tax_rate = _rate(rates.income_tax_rate, 'income_tax_rate', 0.35)
    income = max(0.0, to_number(rates.annual_taxable_income, 0.0))

    total = DEDUCTION_SHARE * max(0.0, capex_net)
    share = total / years
    cap = INCOME_CAP_SHARE * income

    out = [0.0] * lifetime
    remaining = total
    for y in range(1, lifetime + 1):
        if y > years or remaining <= 0:
            break
        ded = min(share, remaining, cap)
        out[y-1] = ded * tax_rate
        remaining -= ded
    return out


def resolve_incentives(gross_capex: float, scheme: Union[str, IncentiveScheme], rates: IncentiveRates,
                       lifetime: int = 25) -> IncentiveResolution:
    scheme = get_scheme(scheme)
    lifetime = int(clamp(to_int(lifetime, 25), *BOUNDS['lifetime_years']))
    capex_net = net_capex(gross_capex, scheme, rates)
    if scheme.income_deduction:
        benefits = income_deduction_benefits(capex_net, lifetime, rates)
    else:
        benefits = [0.0] * lifetime
    return IncentiveResolution(net_capex=capex_net, annual_tax_benefit=tuple(benefits))
