import pytest
from solar_roi.utils import ScenarioParameters


@pytest.fixture
def reference():
    """6 kW residential system, no incentives."""
    return ScenarioParameters(
        name='Reference', power_kw=6, peak_sun_hours=4.2, performance_ratio=0.78, degradation=0.007,
        lifetime_years=25, capex=22_000_000, opex_annual=420_000, base_tariff=850,
        tariff_escalation=0.03, discount_rate=0.13, self_consumption=0.8, incentive_scheme='none',
    )
