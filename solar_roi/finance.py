
import logging
import math
from dataclasses import replace
from typing import Callable, List, Optional, Sequence
import numpy_financial as npf
from .utils import (AnnualLedgerRow, GlobalToggles, IncentiveResolution, RootResult,
                    ScenarioParameters)
from .config import IRR_BRACKET, IRR_MAX_ITER, IRR_TOL
from .tariff import tariff_for_year

logger = logging.getLogger(__name__)


def annual_generation(p: ScenarioParameters, year: int) -> float:
    """kWh produced in operating year `year` (1-based) after degradation."""
    return p.power_kw * p.peak_sun_hours * 365 * p.performance_ratio * ((1.0 - p.degradation) ** (year-1))


def build_ledger(p: ScenarioParameters, incentives: IncentiveResolution,
                 toggles: GlobalToggles = GlobalToggles(), tag: str = 'base',
                 noise_params: Optional[ScenarioParameters] = None) -> List[AnnualLedgerRow]:
    """Year-by-year cash-flow ledger, row 0 being the net capital outlay.

    `p` is expected to be normalized already.
    """
    cum = -incentives.net_capex
    rows = [AnnualLedgerRow(year=0, net=cum, cumulative=cum)]
    export_factor = p.export_factor if toggles.include_exports else 0.0
    opex_escalation = max(0.0, p.tariff_escalation)

    for t in range(1, p.lifetime_years + 1):
        gen_t = annual_generation(p, t)
        tariff_t = tariff_for_year(t, p.tariff_mode, p, toggles.use_volatility, tag, noise_params)
        self_kwh = gen_t * p.self_consumption
        export_kwh = gen_t * (1.0 - p.self_consumption)
        savings = self_kwh * tariff_t
        export_revenue = export_kwh * tariff_t * export_factor
        opex_t = p.opex_annual * ((1.0 + opex_escalation) ** (t-1))
        benefit = incentives.benefit_for_year(t) if toggles.include_tax_benefit else 0.0
        net = savings + export_revenue - opex_t + benefit
        cum += net
        rows.append(AnnualLedgerRow(
            year=t,
            tariff=tariff_t,
            generation_kwh=gen_t,
            self_kwh=self_kwh,
            export_kwh=export_kwh,
            savings=savings,
            export_revenue=export_revenue,
            opex=opex_t,
            tax_benefit=benefit,
            net=net,
            cumulative=cum,
        ))
    return rows


def npv(rate: float, cash_flows: Sequence[float]) -> float:
    return float(npf.npv(rate, list(cash_flows)))


def bisect(f: Callable[[float], float], low: float, high: float,
           tol: float = 1e-7, max_iter: int = 100) -> RootResult:
    """Bounded bisection for f(x) = 0 on [low, high].

    Returns the midpoint of the last bracket with status 'not_converged' when
    |f(mid)| never drops under `tol`; no root at all is 'no_sign_change'.
    """
    f_low, f_high = f(low), f(high)
    if not (math.isfinite(f_low) and math.isfinite(f_high)):
        return RootResult(None, 'non_finite')
    if f_low == 0:
        return RootResult(low, 'converged')
    if f_high == 0:
        return RootResult(high, 'converged')
    if f_low * f_high > 0:
        return RootResult(None, 'no_sign_change')

    for i in range(1, max_iter + 1):
        mid = 0.5*(low+high)
        f_mid = f(mid)
        if not math.isfinite(f_mid):
            return RootResult(None, 'non_finite', i)
        if abs(f_mid) < tol:
            return RootResult(mid, 'converged', i)
        if f_low * f_mid <= 0:
            high = mid
        else:
            low, f_low = mid, f_mid
    return RootResult(0.5*(low+high), 'not_converged', max_iter)


def irr(cash_flows: Sequence[float]) -> Optional[float]:
    cash_flows = list(cash_flows)
    if not (any(cf < 0 for cf in cash_flows) and any(cf > 0 for cf in cash_flows)):
        return None
    res = bisect(lambda r: npv(r, cash_flows), IRR_BRACKET[0], IRR_BRACKET[1], IRR_TOL, IRR_MAX_ITER)
    if res.root is None:
        logger.debug('IRR undefined: %s', res.status)
    elif not res.converged:
        logger.debug('IRR did not converge, using bracket midpoint %.6f', res.root)
    return res.root


def payback_year(cash_flows: Sequence[float]) -> Optional[int]:
    # undiscounted, whole years
    cum = 0.0
    for i, cf in enumerate(cash_flows):
        cum += cf
        if cum >= 0:
            return i
    return None


def first_year_return(cash_flows: Sequence[float], capex_net: float) -> Optional[float]:
    if capex_net <= 0 or len(cash_flows) < 2:
        return None
    return cash_flows[1] / capex_net


def export_share(row: AnnualLedgerRow) -> float:
    income = row.savings + row.export_revenue
    if income <= 0:
        return 0.0
    return min(1.0, max(0.0, row.export_revenue / income))


def lcoe(p: ScenarioParameters, ledger: Sequence[AnnualLedgerRow]) -> Optional[float]:
    """Levelized cost of energy = PV(net capex + O&M) / PV(generation)."""
    r = p.discount_rate
    pv_output = sum(row.generation_kwh / ((1+r)**row.year) for row in ledger[1:])
    if pv_output <= 0:
        return None
    pv_costs = -ledger[0].net
    pv_costs += sum(row.opex / ((1+r)**row.year) for row in ledger[1:])
    return pv_costs / pv_output


def breakeven_tariff(p: ScenarioParameters, incentives: IncentiveResolution,
                     toggles: GlobalToggles = GlobalToggles(), tag: str = 'base',
                     tol: float = 1e-4, max_iter: int = 100) -> Optional[float]:
    """Base tariff at which NPV is zero, everything else held constant.

    The volatility jitter stays seeded from `p`, so NPV is monotone in the
    candidate price. Returns None unless the search converges.
    """
    def f(price):
        ledger = build_ledger(replace(p, base_tariff=price), incentives, toggles, tag, noise_params=p)
        return npv(p.discount_rate, [row.net for row in ledger])

    res = bisect(f, 0.0, max(5*p.base_tariff, 1e-6), tol, max_iter)
    if not res.converged:
        logger.debug('Break-even tariff not found: %s', res.status)
        return None
    return res.root
