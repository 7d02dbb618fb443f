
import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Tuple
from .utils import Comparison, GlobalToggles, ScenarioParameters, ScenarioResult, format_money, format_pct
from .config import DEFAULT_TOGGLES, HIGH_EXPORT_SHARE
from .incentives import get_scheme, resolve_incentives
from .finance import build_ledger, export_share, first_year_return, irr, lcoe, npv, payback_year

logger = logging.getLogger(__name__)


def evaluate(params: ScenarioParameters, toggles: GlobalToggles = DEFAULT_TOGGLES, tag: str = 'base',
             export_delta: Optional[float] = None) -> ScenarioResult:
    """Run one scenario end to end: incentives, ledger, metrics, conclusions."""
    p = params.normalized()
    inc = resolve_incentives(p.capex, p.incentive_scheme, p.rates(), p.lifetime_years)
    ledger = build_ledger(p, inc, toggles, tag)
    cash_flows = [row.net for row in ledger]

    result = ScenarioResult(
        name=p.name,
        net_capex=inc.net_capex,
        ledger=tuple(ledger),
        npv=npv(p.discount_rate, cash_flows),
        irr=irr(cash_flows),
        payback_year=payback_year(cash_flows),
        first_year_return=first_year_return(cash_flows, inc.net_capex),
        export_share_y1=export_share(ledger[1]),
        lcoe=lcoe(p, ledger),
        generation_total_kwh=sum(row.generation_kwh for row in ledger),
    )
    return replace(result, conclusions=tuple(draw_conclusions(result, p, toggles, export_delta)))


def _export_runs(params: ScenarioParameters, toggles: GlobalToggles,
                 tag: str) -> Tuple[ScenarioResult, ScenarioResult]:
    with_exp = evaluate(params, replace(toggles, include_exports=True), tag)
    without = evaluate(params, replace(toggles, include_exports=False), tag)
    return with_exp, without


def export_sensitivity(params: ScenarioParameters, toggles: GlobalToggles = DEFAULT_TOGGLES,
                       tag: str = 'base') -> Tuple[float, float, float]:
    """NPV with exports, NPV without, and their difference."""
    with_exp, without = _export_runs(params, toggles, tag)
    return with_exp.npv, without.npv, with_exp.npv - without.npv


def comparison_series(results: Mapping[str, ScenarioResult]) -> List[Dict[str, float]]:
    """Cumulative cash flow per year for every scenario, over the longest lifetime.

    A scenario that ends earlier holds its final cumulative value.
    """
    if not results:
        return []
    horizon = max(r.lifetime_years for r in results.values())
    series = []
    for y in range(horizon + 1):
        point = {'year': y}
        for key, r in results.items():
            row = r.ledger[y] if y < len(r.ledger) else r.ledger[-1]
            point[key] = row.cumulative
        series.append(point)
    return series


def evaluate_all(scenarios: Mapping[str, ScenarioParameters],
                 toggles: GlobalToggles = DEFAULT_TOGGLES) -> Comparison:
    results, deltas = {}, {}
    for key, params in scenarios.items():
        with_exp, without = _export_runs(params, toggles, key)
        deltas[key] = with_exp.npv - without.npv
        # the run matching the caller's export switch is the scenario result
        r = with_exp if toggles.include_exports else without
        lines = draw_conclusions(r, params.normalized(), toggles, deltas[key])
        results[key] = r = replace(r, conclusions=tuple(lines))
        logger.info('Scenario %s (%s): NPV=%.0f IRR=%s payback=%s', key, r.name, r.npv,
                    format_pct(r.irr), r.payback_year)
    return Comparison(results=results, series=tuple(comparison_series(results)), export_deltas=deltas)


def draw_conclusions(result: ScenarioResult, p: ScenarioParameters, toggles: GlobalToggles,
                     export_delta: Optional[float] = None) -> List[str]:
    """Narrative bullets; only classifies values already on `result`."""
    lines = []
    scheme = get_scheme(p.incentive_scheme)

    if toggles.include_exports:
        lines.append('Exports: included (sale / net metering of surplus).')
        lines.append(f"Year 1: ~{format_pct(result.export_share_y1)} of income comes from exported energy.")
        if result.export_share_y1 >= HIGH_EXPORT_SHARE:
            lines.append('High reliance on exports: review system sizing or negotiate capex.')
    else:
        lines.append('Exports: not included (self-consumption only).')

    if scheme.id == 'none':
        lines.append('Tax incentives: none (simulation).')
    else:
        parts = []
        if scheme.removes_vat:
            parts.append('VAT exclusion (lower net capex)')
        if scheme.removes_duty:
            parts.append('import duty exemption (lower net capex)')
        if scheme.income_deduction:
            if toggles.include_tax_benefit:
                parts.append('income deduction (simulated yearly benefit)')
            else:
                parts.append('income deduction (benefit excluded)')
        lines.append(f"Tax incentives: {' + '.join(parts)}.")
        lines.append('Note: simplified simulation; actual eligibility depends on requirements and documentation.')

    if toggles.use_volatility and p.tariff_mode != 'manual':
        lines.append('Energy price: variable with stable volatility (sensitivity).')
    elif p.tariff_mode == 'manual':
        lines.append('Energy price: variable, from a manual year-by-year list.')
    elif p.tariff_mode == 'cyclical':
        lines.append('Energy price: variable (cyclical / market).')
    else:
        lines.append('Energy price: fixed annual escalation.')

    if result.npv > 0:
        lines.append('Profitability: positive NPV (viable).')
    else:
        lines.append('Profitability: negative NPV (revisit assumptions).')

    if result.irr is None:
        lines.append('IRR not computable (no convergence or cash flow does not change sign).')
    elif result.irr > p.discount_rate:
        lines.append('IRR exceeds the discount rate: attractive.')
    else:
        lines.append('IRR does not exceed the discount rate: review.')

    if result.payback_year is not None:
        lines.append(f"Estimated payback: year {result.payback_year}.")
    else:
        lines.append('Investment not recovered within the horizon.')

    if export_delta is not None:
        lines.append(f"Export impact on NPV (with − without): {format_money(export_delta)}.")
    return lines
