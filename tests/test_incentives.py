import pytest
from solar_roi.utils import IncentiveRates
from solar_roi.config import INCENTIVE_SCHEMES
from solar_roi.incentives import get_scheme, income_deduction_benefits, net_capex, resolve_incentives


class TestCatalog:
    """Incentive scheme catalog."""

    def test_single_none_variant(self):
        none = [s for s in INCENTIVE_SCHEMES.values()
                if not (s.removes_vat or s.removes_duty or s.income_deduction)]
        assert [s.id for s in none] == ['none']

    def test_unknown_falls_back(self):
        assert get_scheme('nope').id == 'none'


class TestNetCapex:
    """VAT and duty removal from gross capex."""

    def test_none_keeps_gross(self):
        res = resolve_incentives(22_000_000, 'none', IncentiveRates(), lifetime=25)
        assert res.net_capex == 22_000_000
        assert len(res.annual_tax_benefit) == 25
        assert all(b == 0 for b in res.annual_tax_benefit)

    def test_vat_removed_as_gross_up(self):
        res = resolve_incentives(1_190_000, 'co_vat', IncentiveRates(vat_rate=0.19))
        assert res.net_capex == pytest.approx(1_000_000)

    def test_vat_then_duty(self):
        got = net_capex(1_000_000, INCENTIVE_SCHEMES['co_vat_duty'], IncentiveRates(vat_rate=0.19, duty_rate=0.05))
        assert got == pytest.approx(1_000_000 / 1.19 / 1.05)

    def test_rates_clamped(self):
        got = net_capex(1_000_000, INCENTIVE_SCHEMES['co_vat'], IncentiveRates(vat_rate=5.0))
        assert got == pytest.approx(1_000_000 / 1.3)

    def test_negative_capex(self):
        assert net_capex(-5, INCENTIVE_SCHEMES['co_full'], IncentiveRates()) == 0.0


class TestIncomeDeduction:
    """Income deduction benefit stream."""

    def test_even_spread(self):
        rates = IncentiveRates(income_tax_rate=0.35, deduction_years=5, annual_taxable_income=1e12)
        out = income_deduction_benefits(10_000_000, 25, rates)
        assert out[:5] == pytest.approx([1_000_000 * 0.35] * 5)
        assert out[5:] == [0.0] * 20

    def test_income_cap_stops_at_window(self):
        # base 5M over 5 years = 1M/yr, capped at 0.5 * 1M = 500k
        rates = IncentiveRates(income_tax_rate=0.4, deduction_years=5, annual_taxable_income=1_000_000)
        out = income_deduction_benefits(10_000_000, 25, rates)
        assert out[:5] == pytest.approx([500_000 * 0.4] * 5)
        assert sum(1 for b in out if b > 0) == 5

    def test_window_longer_than_lifetime(self):
        rates = IncentiveRates(deduction_years=15, annual_taxable_income=1e12)
        out = income_deduction_benefits(10_000_000, 3, rates)
        assert len(out) == 3
        assert all(b > 0 for b in out)

    def test_total_never_exceeds_base(self):
        rates = IncentiveRates(income_tax_rate=0.5, deduction_years=1, annual_taxable_income=1e12)
        out = income_deduction_benefits(8_000_000, 10, rates)
        assert sum(out) == pytest.approx(0.5 * 8_000_000 * 0.5)

    def test_full_scheme_uses_reduced_capex(self):
        rates = IncentiveRates(vat_rate=0.19, duty_rate=0.05, income_tax_rate=0.35, deduction_years=5,
                               annual_taxable_income=1e12)
        res = resolve_incentives(26_000_000, 'co_full', rates)
        expected = 0.5 * res.net_capex / 5 * 0.35
        assert res.annual_tax_benefit[0] == pytest.approx(expected)
