import logging
from dataclasses import asdict, fields
import streamlit as st
import pandas as pd
import plotly.express as px
from solar_roi.utils import GlobalToggles, ScenarioParameters, format_compact, format_money, format_pct
from solar_roi.config import BOUNDS, INCENTIVE_SCHEMES, PRESETS, TARIFF_MODES, default_scenarios
from solar_roi.scenarios import evaluate_all
from solar_roi.finance import breakeven_tariff
from solar_roi.incentives import resolve_incentives

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%H:%M:%S',
)

st.set_page_config(page_title='Smart Energy ROI – Solar Scenarios A/B/C', layout='wide')

if 'scenarios' not in st.session_state:
    st.session_state.scenarios = default_scenarios()

st.sidebar.title('Navigation')
page = st.sidebar.radio('Go to', ['Scenario Inputs', 'Comparison', 'Scenario Detail', 'Cases Library'])

st.sidebar.subheader('Global switches')
toggles = GlobalToggles(
    include_tax_benefit=st.sidebar.checkbox('Include income-tax benefit', True),
    use_volatility=st.sidebar.checkbox('Stable tariff volatility', False),
    include_exports=st.sidebar.checkbox('Include exported surplus', True),
)
active = st.sidebar.radio('Active scenario', list(st.session_state.scenarios), index=1)


@st.cache_data
def df_to_csv_bytes(df):
    return df.to_csv(index=False).encode('utf-8')


def ledger_frame(result):
    return pd.DataFrame([asdict(row) for row in result.ledger])


# --- Page 1: Scenario Inputs ---
if page == 'Scenario Inputs':
    s = st.session_state.scenarios[active]
    st.header(f'Inputs – Scenario {active} ({s.name})')
    engineer = st.toggle('Engineer mode (all inputs)', True)

    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input('Scenario name', s.name)
        lifetime = st.number_input('Lifetime (years)', *BOUNDS['lifetime_years'], s.lifetime_years)
        power = st.number_input('PV power (kW)', min_value=0.0, value=float(s.power_kw))
        self_cons = st.slider('Self-consumption share', 0.0, 1.0, float(s.self_consumption))
        capex = st.number_input('Capex (gross)', min_value=0.0, value=float(s.capex), step=1e6, format='%.0f')
        opex = st.number_input('Annual O&M', min_value=0.0, value=float(s.opex_annual), step=1e4, format='%.0f')
    with col2:
        base_tariff = st.number_input('Base tariff (per kWh)', min_value=0.0, value=float(s.base_tariff))
        escalation = st.slider('Tariff escalation', *BOUNDS['tariff_escalation'], float(s.tariff_escalation))
        discount = st.slider('Discount rate', 0.01, BOUNDS['discount_rate'][1], float(s.discount_rate))
        mode = st.selectbox('Tariff mode', TARIFF_MODES, TARIFF_MODES.index(s.tariff_mode))
        manual = st.text_input('Manual tariffs (year by year)', ', '.join(f'{v:g}' for v in s.manual_tariffs))
    with col3:
        scheme = st.selectbox('Incentive scheme', list(INCENTIVE_SCHEMES), list(INCENTIVE_SCHEMES).index(s.incentive_scheme),
                              format_func=lambda k: INCENTIVE_SCHEMES[k].label)

    raw = dict(name=name, lifetime_years=lifetime, power_kw=power, self_consumption=self_cons, capex=capex,
               opex_annual=opex, base_tariff=base_tariff, tariff_escalation=escalation, discount_rate=discount,
               tariff_mode=mode, manual_tariffs=manual, incentive_scheme=scheme)

    if engineer:
        st.subheader('Engineering & tax assumptions')
        col4, col5, col6 = st.columns(3)
        with col4:
            raw['peak_sun_hours'] = st.slider('Peak sun hours', *BOUNDS['peak_sun_hours'], float(s.peak_sun_hours))
            raw['performance_ratio'] = st.slider('Performance ratio', *BOUNDS['performance_ratio'], float(s.performance_ratio))
            raw['degradation'] = st.slider('Annual degradation', *BOUNDS['degradation'], float(s.degradation), format='%.3f')
        with col5:
            raw['export_factor'] = st.slider('Export price factor', *BOUNDS['export_factor'], float(s.export_factor))
            raw['volatility'] = st.slider('Volatility', *BOUNDS['volatility'], float(s.volatility))
            raw['cycle_years'] = st.number_input('Cycle length (years)', *BOUNDS['cycle_years'], s.cycle_years)
        with col6:
            raw['vat_rate'] = st.slider('Assumed VAT', *BOUNDS['vat_rate'], float(s.vat_rate))
            raw['duty_rate'] = st.slider('Assumed import duty', *BOUNDS['duty_rate'], float(s.duty_rate))
            if INCENTIVE_SCHEMES[scheme].income_deduction:
                raw['income_tax_rate'] = st.slider('Income tax rate', *BOUNDS['income_tax_rate'], float(s.income_tax_rate))
                raw['deduction_years'] = st.number_input('Deduction years', *BOUNDS['deduction_years'], s.deduction_years)
                raw['annual_taxable_income'] = st.number_input('Annual taxable income', min_value=0.0,
                                                               value=float(s.annual_taxable_income), format='%.0f')

    kept = {f.name: getattr(s, f.name) for f in fields(s) if f.name not in raw}
    st.session_state.scenarios[active] = ScenarioParameters.from_mapping({**kept, **raw})

    st.subheader('Duplicate active scenario')
    cols = st.columns(len(st.session_state.scenarios))
    for col, key in zip(cols, st.session_state.scenarios):
        if col.button(f'Copy to {key}', disabled=key == active):
            target = st.session_state.scenarios[key]
            st.session_state.scenarios[key] = ScenarioParameters.from_mapping(
                {**asdict(st.session_state.scenarios[active]), 'name': target.name})
            st.success(f'Scenario {active} copied to {key}.')

# --- Page 2: Comparison ---
elif page == 'Comparison':
    st.header('Scenario Comparison')
    comp = evaluate_all(st.session_state.scenarios, toggles)

    cols = st.columns(len(comp.results))
    for col, (key, r) in zip(cols, comp.results.items()):
        col.subheader(f'{key} • {r.name}')
        col.metric('NPV', format_compact(r.npv))
        col.metric('IRR', format_pct(r.irr))
        col.metric('Payback (year)', r.payback_year if r.payback_year is not None else 'not recovered')
        col.metric('Year-1 return', format_pct(r.first_year_return))

    df = pd.DataFrame(list(comp.series))
    fig = px.line(df, x='year', y=list(comp.results), title='Cumulative cash flow')
    st.plotly_chart(fig, use_container_width=True)

    st.subheader(f'Conclusions – Scenario {active}')
    for line in comp.results[active].conclusions:
        st.markdown(f'- {line}')

    with st.expander('Download Results'):
        st.download_button('Comparison CSV', df_to_csv_bytes(df), 'comparison.csv', 'text/csv')

# --- Page 3: Scenario Detail ---
elif page == 'Scenario Detail':
    s = st.session_state.scenarios[active]
    comp = evaluate_all({active: s}, toggles)
    r = comp.results[active]
    st.header(f'Scenario {active} – {r.name}')

    col1, col2, col3, col4 = st.columns(4)
    col1.metric('Net capex', format_money(r.net_capex))
    col2.metric('NPV', format_money(r.npv))
    col3.metric('IRR', format_pct(r.irr))
    col4.metric('LCOE (per kWh)', f'{r.lcoe:,.2f}' if r.lcoe is not None else '—')

    df_ledger = ledger_frame(r)
    st.subheader('Annual ledger')
    st.dataframe(df_ledger, use_container_width=True)
    fig = px.bar(df_ledger[df_ledger.year > 0], x='year', y=['savings', 'export_revenue', 'opex', 'tax_benefit'],
                 title='Savings, export revenue, O&M, tax benefit')
    st.plotly_chart(fig, use_container_width=True)

    p = s.normalized()
    be = breakeven_tariff(p, resolve_incentives(p.capex, p.incentive_scheme, p.rates(), p.lifetime_years),
                          toggles, active)
    if be is not None:
        st.info(f'Break-even base tariff for NPV=0: {be:,.2f} per kWh')
    st.info(f'Export impact on NPV (with − without): {format_money(comp.export_deltas[active])}')

    with st.expander('Download Results'):
        st.download_button('Annual ledger CSV', df_to_csv_bytes(df_ledger), f'ledger_{active}.csv', 'text/csv')

# --- Page 4: Cases Library ---
else:
    st.header('Cases Library')
    st.write('Reset all scenarios to the preset Conservative / Base / Optimistic cases.')
    st.table(pd.DataFrame({k: asdict(v) for k, v in PRESETS.items()}).astype(str))
    if st.button('Load Presets'):
        st.session_state.scenarios = default_scenarios()
        st.success('Presets loaded. Go to Comparison.')
