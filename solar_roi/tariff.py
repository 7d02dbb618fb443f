
import hashlib
import math
from typing import List, Optional
import numpy as np
from .utils import ScenarioParameters


def stable_noise(tag: str, year: int, p: ScenarioParameters) -> float:
    """Reproducible draw in [0, 1) keyed by scenario tag, year and tariff inputs."""
    key = f"{tag}|{year}|{p.base_tariff!r}|{p.tariff_escalation!r}|{p.volatility!r}"
    seed = int.from_bytes(hashlib.sha256(key.encode('utf-8')).digest()[:8], 'little')
    return float(np.random.default_rng(seed).random())


def escalated(base: float, escalation: float, years: int) -> float:
    return base * ((1.0 + escalation) ** years)


def tariff_for_year(year: int, mode: str, p: ScenarioParameters,
                    use_volatility: bool = False, tag: str = 'base',
                    noise_params: Optional[ScenarioParameters] = None) -> float:
    """Unit energy price for an operating year; year 0 is the base tariff.

    `noise_params` pins the jitter seed to another parameter set, so reruns that
    only move the base tariff keep the same draw for each year.
    """
    if year <= 0:
        return p.base_tariff

    if mode == 'manual':
        prices = p.manual_tariffs
        if len(prices) >= year:
            return prices[year-1]
        last = prices[-1] if prices else p.base_tariff
        return escalated(last, p.tariff_escalation, year - len(prices))

    trend = escalated(p.base_tariff, p.tariff_escalation, year - 1)
    if use_volatility:
        # jitter in [-vol, +vol] around the trend
        u = stable_noise(tag, year, noise_params or p)
        return max(0.0, trend * (1.0 + (2.0*u - 1.0) * p.volatility))
    if mode == 'cyclical':
        return trend * (1.0 + p.volatility * math.sin(2.0 * math.pi * (year - 1) / p.cycle_years))
    return trend


def tariff_schedule(p: ScenarioParameters, use_volatility: bool = False, tag: str = 'base') -> List[float]:
    return [tariff_for_year(y, p.tariff_mode, p, use_volatility, tag) for y in range(p.lifetime_years + 1)]
