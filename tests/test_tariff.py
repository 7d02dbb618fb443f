import pytest
from dataclasses import replace
from solar_roi.utils import ScenarioParameters
from solar_roi.tariff import stable_noise, tariff_for_year, tariff_schedule

P = ScenarioParameters(base_tariff=1000, tariff_escalation=0.05, manual_tariffs=(900, 950, 1100),
                       volatility=0.2, cycle_years=4, lifetime_years=10)


class TestEscalated:
    """Fixed annual escalation."""

    def test_year_zero_is_base(self):
        for mode in ('escalated', 'manual', 'cyclical'):
            assert tariff_for_year(0, mode, P) == 1000

    def test_geometric(self):
        assert tariff_for_year(1, 'escalated', P) == pytest.approx(1000)
        assert tariff_for_year(3, 'escalated', P) == pytest.approx(1000 * 1.05 ** 2)


class TestManual:
    """Manual year-by-year schedule."""

    def test_list_verbatim(self):
        assert [tariff_for_year(y, 'manual', P) for y in (1, 2, 3)] == [900, 950, 1100]

    def test_escalates_after_list(self):
        assert tariff_for_year(4, 'manual', P) == pytest.approx(1100 * 1.05)
        assert tariff_for_year(6, 'manual', P) == pytest.approx(1100 * 1.05 ** 3)

    def test_empty_list_escalates_from_base(self):
        p = replace(P, manual_tariffs=())
        assert tariff_for_year(2, 'manual', p) == pytest.approx(1000 * 1.05 ** 2)

    def test_manual_ignores_volatility(self):
        assert tariff_for_year(2, 'manual', P, use_volatility=True) == 950


class TestCyclical:
    """Sinusoidal variation around the trend."""

    def test_zero_volatility_matches_escalated(self):
        p = replace(P, volatility=0.0)
        for y in range(11):
            assert tariff_for_year(y, 'cyclical', p) == tariff_for_year(y, 'escalated', p)

    def test_oscillation_bounded(self):
        for y in range(1, 11):
            trend = tariff_for_year(y, 'escalated', P)
            assert trend * 0.8 - 1e-9 <= tariff_for_year(y, 'cyclical', P) <= trend * 1.2 + 1e-9

    def test_quarter_cycle_peak(self):
        # year 2 with a 4-year cycle sits at sin(pi/2)
        assert tariff_for_year(2, 'cyclical', P) == pytest.approx(1000 * 1.05 * 1.2)


class TestVolatility:
    """Deterministic jitter."""

    def test_noise_reproducible(self):
        assert stable_noise('A', 3, P) == stable_noise('A', 3, P)
        assert 0.0 <= stable_noise('A', 3, P) < 1.0

    def test_noise_depends_on_tag(self):
        assert stable_noise('A', 3, P) != stable_noise('B', 3, P)

    def test_jitter_within_band(self):
        for y in range(1, 11):
            trend = tariff_for_year(y, 'escalated', P)
            got = tariff_for_year(y, 'escalated', P, use_volatility=True, tag='A')
            assert trend * 0.8 - 1e-9 <= got <= trend * 1.2 + 1e-9

    def test_cyclical_jitter_replaces_sinusoid(self):
        for y in range(1, 11):
            jittered = tariff_for_year(y, 'cyclical', P, use_volatility=True, tag='A')
            trend = tariff_for_year(y, 'escalated', P)
            u = stable_noise('A', y, P)
            assert jittered == tariff_for_year(y, 'escalated', P, use_volatility=True, tag='A')
            assert jittered == pytest.approx(trend * (1 + (2*u - 1) * 0.2))

    def test_noise_params_pin_the_draw(self):
        doubled = replace(P, base_tariff=2000)
        for y in range(1, 11):
            pinned = tariff_for_year(y, 'escalated', doubled, use_volatility=True, tag='A', noise_params=P)
            assert pinned == pytest.approx(2 * tariff_for_year(y, 'escalated', P, use_volatility=True, tag='A'))

    def test_schedule_length(self):
        assert len(tariff_schedule(P)) == 11
