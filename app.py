# app.py
"""
ValueInvest Pro
===============
Stock research dashboard in one search:
1. Overview: price header, classic valuation models and quality scorecards
2. DCF sandbox: bear/base/bull scenarios, decay, terminal method, live sliders
3. Sum of the Parts: per-segment EV/EBITDA multiples
4. Financials, company profile, management, market activity and news
"""

import os
import logging
import streamlit as st
from dotenv import load_dotenv

# Load API keys from .env file (if exists)
load_dotenv()
try:
    if not os.environ.get("GEMINI_API_KEY"):
        secret_key = st.secrets.get("GEMINI_API_KEY")
        if secret_key:
            os.environ["GEMINI_API_KEY"] = str(secret_key)
except Exception:
    # st.secrets is not always available locally.
    pass
import pandas as pd
import altair as alt
from engine import analyze_stock
from analysis_state import AnalysisState, LoadingState
from data_adapter import BALANCE_SHEET_METRICS, CASH_FLOW_METRICS, PROFIT_LOSS_METRICS, REPORT_TYPES, SCENARIO_TAGS
from calculator_session import (
    DCFCalculatorSession,
    DISCOUNT_RATE_RANGE,
    GROWTH_RATE_RANGE,
    SEGMENT_MULTIPLE_RANGE,
    SOTPCalculatorSession,
    clamp,
)
from dcf_ui_adapter import (
    DCFUIAdapter,
    format_money,
    format_multiple,
    format_pct,
    format_sotp_bridge_table,
    sotp_segment_frame,
    statement_frame,
)
from insights import (
    BAD,
    GOOD,
    classic_models,
    ev_ebitda_rating,
    fscore_rating,
    get_valuation_verdict,
    interest_coverage_rating,
    leverage_rating,
    owner_earnings_yield,
    owner_yield_rating,
    pe_rating,
    peg_rating,
    relative_pe_rating,
    value_creation_rating,
    value_creation_spread,
)
from sources import SOURCE_CATALOG, cite

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="%(asctime)s %(name)s %(levelname)s %(message)s")

ANALYSIS_CACHE_TTL_SECONDS = 15 * 60
TONE_COLORS = {GOOD: "#16a34a", BAD: "#dc2626"}
NEUTRAL_COLOR = "#64748b"
SCENARIO_LABELS = {"bear": "🐻 Bear", "base": "⚖️ Base", "bull": "🐂 Bull"}
TERMINAL_METHOD_LABELS = {"growth": "Perpetuity Growth", "multiple": "Exit Multiple"}

st.set_page_config(page_title="ValueInvest Pro", page_icon="📈", layout="wide")

st.markdown("""
<style>
    .card { background: #ffffff; border: 1px solid #e2e8f0; border-radius: 12px; padding: 16px; margin-bottom: 12px; }
    .card-title { font-size: 0.75rem; text-transform: uppercase; letter-spacing: 0.05em; color: #64748b; }
    .card-value { font-size: 1.5rem; font-weight: 700; }
    .card-caption { font-size: 0.8rem; font-weight: 600; }
    .badge { display: inline-block; padding: 2px 8px; border-radius: 999px; font-size: 0.75rem; font-weight: 600; color: #ffffff; }
</style>
""", unsafe_allow_html=True)


# --- Session State ---
if 'analysis' not in st.session_state:
    st.session_state.analysis = AnalysisState()
if 'dcf_session' not in st.session_state:
    st.session_state.dcf_session = None
if 'sotp_session' not in st.session_state:
    st.session_state.sotp_session = None
if 'widget_generation' not in st.session_state:
    st.session_state.widget_generation = 0


@st.cache_data(ttl=ANALYSIS_CACHE_TTL_SECONDS, show_spinner=False)
def cached_analyze_stock(query: str, report_type: str):
    return analyze_stock(query, report_type)


# --- Helper Functions ---
def reset_analysis():
    st.session_state.dcf_session = None
    st.session_state.sotp_session = None
    st.session_state.widget_generation += 1


def start_calculators(snapshot):
    st.session_state.dcf_session = DCFCalculatorSession(snapshot)
    st.session_state.sotp_session = SOTPCalculatorSession(snapshot)
    st.session_state.widget_generation += 1


def tone_color(tone: str) -> str:
    return TONE_COLORS.get(tone, NEUTRAL_COLOR)


def render_card(title: str, value: str, caption: str = "", tone: str = "", footnote: str = ""):
    color = tone_color(tone)
    st.markdown(f"""
        <div class="card">
            <div class="card-title">{title} {footnote}</div>
            <div class="card-value">{value}</div>
            <div class="card-caption" style="color:{color}">{caption}</div>
        </div>
    """, unsafe_allow_html=True)


def widget_key(name: str, *parts) -> str:
    """Widget keys change with the generation counter so a reset re-seeds every slider."""
    suffix = "_".join(str(p) for p in parts)
    return f"{name}_{suffix}_{st.session_state.widget_generation}"


def synced_slider(label, bounds, current, key, setter, step=0.1, fmt="%.1f", help=None):
    """Slider bound to a session setter; the setter runs only when the user moved it."""
    lo, hi = float(bounds[0]), float(bounds[1])
    shown = clamp(current, (lo, hi))
    value = st.slider(label, min_value=lo, max_value=hi, value=shown, step=step, format=fmt, key=key, help=help)
    if value != shown:
        setter(value)


# --- Sidebar ---
with st.sidebar:
    st.markdown("## 📈 ValueInvest Pro")
    st.caption("AI-assembled fundamentals with interactive DCF and SOTP valuation.")
    query = st.text_input("Stock name or ticker", placeholder="e.g. AAPL, RELIANCE, Infosys")
    report_type = st.radio(
        "Financial statements",
        REPORT_TYPES,
        format_func=str.title,
        horizontal=True,
        help="Consolidated includes subsidiaries; standalone covers the parent entity only.",
    )
    analysis: AnalysisState = st.session_state.analysis
    if st.button("Analyze", type="primary", use_container_width=True, disabled=analysis.is_loading):
        reset_analysis()
        with st.spinner(f"Researching {query.strip() or 'stock'} with Gemini..."):
            status = analysis.run(cached_analyze_stock, query, report_type)
        if status == LoadingState.SUCCESS:
            start_calculators(analysis.snapshot)

    if st.button("🔄 Clear Cache", help="Force a fresh AI analysis"):
        cached_analyze_stock.clear()
        st.success("Cache cleared.")

    st.markdown("---")
    st.caption(
        "Figures are compiled by an AI model from web search results and may be inaccurate. "
        "This is not investment advice."
    )


def render_header(snapshot):
    st.markdown(f"# {snapshot.name} ({snapshot.symbol})")
    meta = " · ".join(x for x in [snapshot.sector, snapshot.industry, snapshot.market_cap_category] if x)
    st.caption(f"{meta} · {snapshot.report_type.title()} · Updated {snapshot.last_updated}")

    change = None
    if snapshot.previous_close:
        change = (snapshot.price - snapshot.previous_close) / snapshot.previous_close * 100
    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.metric("Price", format_money(snapshot.price, snapshot.currency),
                  delta=format_pct(change, signed=True) if change is not None else None)
    with col2:
        st.metric("Market Cap", snapshot.market_cap or "—")
    with col3:
        st.metric("P/E", format_multiple(snapshot.pe))
    with col4:
        st.metric("52W High", format_money(snapshot.high_52_week, snapshot.currency))
    with col5:
        st.metric("52W Low", format_money(snapshot.low_52_week, snapshot.currency))


def render_overview(snapshot):
    currency = snapshot.currency

    st.subheader("Classic Valuation Models")
    footnotes = {"graham_number": "graham_number", "graham_growth": "graham_growth", "lynch": "lynch", "ten_cap": "ten_cap"}
    cols = st.columns(4)
    for col, model in zip(cols, classic_models(snapshot)):
        with col:
            if model.insight is None:
                render_card(model.title, "—", "Not available", footnote=cite(footnotes[model.key]))
                continue
            tone = GOOD if model.insight.is_undervalued else BAD
            diff = model.insight.percent_difference
            caption = f"{diff:.1f}% {model.insight.label}" if diff is not None else model.insight.label
            render_card(model.title, format_money(model.value, currency), caption, tone,
                        footnote=cite(footnotes[model.key]))

    st.subheader("Quality & Risk")
    owner_yield = owner_earnings_yield(snapshot.owner_earnings_per_share, snapshot.price)
    spread = value_creation_spread(snapshot.roic, snapshot.wacc)
    cards = [
        ("Piotroski F-Score", f"{snapshot.piotroski_f_score:.0f}/9" if snapshot.piotroski_f_score is not None else "—",
         fscore_rating(snapshot.piotroski_f_score), cite("fscore")),
        ("EV/EBITDA", format_multiple(snapshot.ev_to_ebitda), ev_ebitda_rating(snapshot.ev_to_ebitda), cite("ev_ebitda")),
        ("Debt / Equity", format_multiple(snapshot.debt_to_equity, 2), leverage_rating(snapshot.debt_to_equity), ""),
        ("Interest Coverage", format_multiple(snapshot.interest_coverage), interest_coverage_rating(snapshot.interest_coverage), ""),
        ("P/E", format_multiple(snapshot.pe), pe_rating(snapshot.pe), ""),
        ("P/E vs Industry", f"{format_multiple(snapshot.pe)} vs {format_multiple(snapshot.industry_pe)}",
         relative_pe_rating(snapshot.pe, snapshot.industry_pe), ""),
        ("PEG Ratio", format_multiple(snapshot.peg_ratio, 2), peg_rating(snapshot.peg_ratio), cite("lynch")),
        ("Owner Earnings Yield", format_pct(owner_yield), owner_yield_rating(owner_yield), cite("owner_earnings")),
        ("ROIC − WACC", format_pct(spread, signed=True), value_creation_rating(spread), cite("roic_wacc")),
    ]
    for start in range(0, len(cards), 3):
        cols = st.columns(3)
        for col, (title, value, rating, footnote) in zip(cols, cards[start:start + 3]):
            with col:
                render_card(title, value, rating.caption, rating.tone, footnote)

    col_moat, col_dcf = st.columns(2)
    with col_moat:
        st.markdown(f"**Economic Moat:** {snapshot.moat_rating or '—'}")
        if snapshot.moat_source:
            st.caption(snapshot.moat_source)
    with col_dcf:
        if snapshot.intrinsic_value is not None:
            st.markdown(f"**AI DCF estimate:** {format_money(snapshot.intrinsic_value, currency)}")
        if snapshot.reverse_dcf_rate is not None:
            st.caption(f"Reverse DCF: the current price implies {format_pct(snapshot.reverse_dcf_rate)} annual FCF growth.")

    col_growth, col_risk = st.columns(2)
    with col_growth:
        st.markdown("**Growth Factors**")
        for item in snapshot.growth_factors or ["—"]:
            st.markdown(f"- {item}")
    with col_risk:
        st.markdown("**Risk Factors**")
        for item in snapshot.risk_factors or ["—"]:
            st.markdown(f"- {item}")

    if snapshot.financial_review:
        with st.expander("Financial Review", expanded=False):
            st.markdown(snapshot.financial_review)


def render_dcf_chart(adapter: DCFUIAdapter):
    chart_data = adapter.chart_frame()
    if chart_data.empty:
        st.caption("No projection to chart.")
        return
    year_order = adapter.projection_frame()["year"].tolist()
    bars = (
        alt.Chart(chart_data)
        .mark_bar()
        .encode(
            x=alt.X("year:N", sort=year_order, axis=alt.Axis(title=None, labelAngle=0)),
            xOffset="series:N",
            y=alt.Y("value:Q", title=f"FCF per share ({adapter.currency})"),
            color=alt.Color("series:N", scale=alt.Scale(range=["#3b82f6", "#94a3b8"]), legend=alt.Legend(title=None)),
            tooltip=[
                alt.Tooltip("year:N", title="Year"),
                alt.Tooltip("series:N", title="Series"),
                alt.Tooltip("value:Q", title="Value", format=",.2f"),
            ],
        )
    )
    st.altair_chart(bars, use_container_width=True)


def render_dcf(snapshot):
    session: DCFCalculatorSession = st.session_state.dcf_session
    if session is None:
        return
    currency = snapshot.currency

    col_scn, col_method, col_decay, col_reset = st.columns([3, 3, 2, 1])
    with col_scn:
        scenario = st.radio(
            "Scenario", SCENARIO_TAGS, index=SCENARIO_TAGS.index(session.active_scenario),
            format_func=SCENARIO_LABELS.get, horizontal=True, key=widget_key("scenario", snapshot.symbol),
        )
        if scenario != session.active_scenario:
            session.select_scenario(scenario)
    with col_method:
        methods = list(TERMINAL_METHOD_LABELS)
        method = st.radio(
            "Terminal value", methods, index=methods.index(session.terminal_method),
            format_func=TERMINAL_METHOD_LABELS.get, horizontal=True, key=widget_key("method", snapshot.symbol),
        )
        if method != session.terminal_method:
            session.set_terminal_method(method)
    with col_decay:
        use_decay = st.toggle("Growth decay", value=session.use_decay, key=widget_key("decay", snapshot.symbol),
                              help="Fade growth linearly toward the long-run rate by year 10.")
        if use_decay != session.use_decay:
            session.set_use_decay(use_decay)
    with col_reset:
        st.write("")
        if st.button("Reset", key="reset_dcf", help="Restore all assumptions to their defaults"):
            session.reset()
            st.session_state.widget_generation += 1
            st.rerun()

    case = snapshot.scenario(session.active_scenario)
    if case.narrative:
        st.info(case.narrative)

    keys = (snapshot.symbol, session.active_scenario, session.terminal_method)
    params = session.params
    col1, col2, col3 = st.columns(3)
    with col1:
        synced_slider("FCF Growth Rate (%)", GROWTH_RATE_RANGE, params.growth_rate,
                      widget_key("growth", *keys), session.set_growth_rate)
        synced_slider(f"Starting FCF / Share ({currency})", session.fcf_range, session.fcf,
                      widget_key("fcf", snapshot.symbol), session.set_fcf, fmt="%.2f")
    with col2:
        synced_slider("Discount Rate (%)", DISCOUNT_RATE_RANGE, params.discount_rate,
                      widget_key("discount", *keys), session.set_discount_rate)
        synced_slider(f"Net Debt / Share ({currency})", session.net_debt_range, session.net_debt_per_share,
                      widget_key("net_debt", snapshot.symbol), session.set_net_debt_per_share, fmt="%.2f")
    with col3:
        if session.terminal_method == "growth":
            synced_slider("Terminal Growth (%)", session.terminal_range, params.terminal_val,
                          widget_key("terminal", *keys), session.set_terminal_val,
                          help=f"Gordon Growth perpetuity rate {cite('gordon_growth')}")
        else:
            synced_slider("Exit Multiple (EV/FCF)", session.terminal_range, params.terminal_val,
                          widget_key("terminal", *keys), session.set_terminal_val, step=0.5, fmt="%.1fx",
                          help=f"Multiple applied to year-10 FCF {cite('exit_multiple')}")

    result = session.result
    adapter = DCFUIAdapter(result, session.params, session.inputs, snapshot.price, currency)
    verdict = get_valuation_verdict(result.margin_of_safety_pct)

    col_iv, col_price, col_mos, col_tv = st.columns(4)
    with col_iv:
        st.metric("Intrinsic Value / Share", format_money(result.intrinsic_value_per_share, currency),
                  delta=format_pct(result.margin_of_safety_pct, signed=True) if result.margin_of_safety_pct is not None else None)
    with col_price:
        st.metric("Current Price", format_money(snapshot.price, currency))
    with col_mos:
        render_card("Verdict", verdict.caption, format_pct(result.margin_of_safety_pct, signed=True), verdict.tone)
    with col_tv:
        st.metric("PV(Terminal) as % EV", format_pct(result.tv_dominance_pct))

    for warning in result.warnings:
        st.warning(warning)

    render_dcf_chart(adapter)

    with st.expander("Projection Table", expanded=False):
        st.dataframe(pd.DataFrame(adapter.format_fcf_projection_table()), use_container_width=True, hide_index=True)
    with st.expander("Valuation Bridge & Assumptions", expanded=False):
        col_bridge, col_assump = st.columns(2)
        with col_bridge:
            st.dataframe(pd.DataFrame(adapter.format_bridge_table()), use_container_width=True, hide_index=True)
        with col_assump:
            st.dataframe(pd.DataFrame(adapter.format_assumptions_table()), use_container_width=True, hide_index=True)
    with st.expander("Calculation Trace", expanded=False):
        st.dataframe(pd.DataFrame(adapter.format_trace_table()), use_container_width=True, hide_index=True)


def render_sotp(snapshot):
    session: SOTPCalculatorSession = st.session_state.sotp_session
    if session is None:
        return
    currency = snapshot.currency
    result = session.result

    if not result.applicable:
        st.info("Sum-of-the-parts valuation is not applicable: no segment breakdown was reported for this company.")
        return

    col_reset = st.columns([6, 1])[1]
    with col_reset:
        if st.button("Reset", key="reset_sotp", help="Restore the reported segment multiples"):
            session.reset()
            st.session_state.widget_generation += 1
            st.rerun()

    col_table, col_chart = st.columns([3, 2])
    with col_table:
        for index, segment in enumerate(session.segments):
            with st.container(border=True):
                st.markdown(f"**{segment.name}** · EBITDA {format_money(segment.ebitda, currency, 0)}")
                if segment.narrative:
                    st.caption(segment.narrative)
                synced_slider(
                    "EV/EBITDA multiple", SEGMENT_MULTIPLE_RANGE, segment.valuation_multiple,
                    widget_key("segment", snapshot.symbol, index),
                    lambda value, i=index: session.set_segment_multiple(i, value),
                    step=0.5, fmt="%.1fx",
                )
        result = session.result

    with col_chart:
        frame = sotp_segment_frame(result)
        pie = (
            alt.Chart(frame)
            .mark_arc(innerRadius=50)
            .encode(
                theta=alt.Theta("ev:Q"),
                color=alt.Color("name:N", legend=alt.Legend(title="Segment")),
                tooltip=[
                    alt.Tooltip("name:N", title="Segment"),
                    alt.Tooltip("ev:Q", title="EV", format=",.0f"),
                    alt.Tooltip("share_pct:Q", title="Share of EV (%)", format=".1f"),
                ],
            )
        )
        st.altair_chart(pie, use_container_width=True)

    verdict = get_valuation_verdict(result.upside_pct)
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Target Price / Share", format_money(result.target_price_per_share, currency),
                  delta=format_pct(result.upside_pct, signed=True) if result.upside_pct is not None else None)
    with col2:
        st.metric("Current Price", format_money(snapshot.price, currency))
    with col3:
        render_card("Verdict", verdict.caption, "", verdict.tone)

    st.dataframe(
        pd.DataFrame(format_sotp_bridge_table(result, session.net_debt, session.total_shares, currency)),
        use_container_width=True, hide_index=True,
    )
    st.caption(f"Method {cite('sotp')}: {SOURCE_CATALOG['sotp']['description']}")


def render_financials(snapshot):
    if snapshot.growth_tables:
        st.subheader("Compounded Growth")
        table = pd.DataFrame(snapshot.growth_tables)
        table.columns = [c.replace("Growth", " Growth").replace("Cagr", " CAGR").replace("roeHistory", "ROE").title()
                         for c in table.columns]
        st.dataframe(table, use_container_width=True)

    statements = [
        ("Profit & Loss", snapshot.profit_loss, PROFIT_LOSS_METRICS),
        ("Balance Sheet", snapshot.balance_sheet, BALANCE_SHEET_METRICS),
        ("Cash Flow", snapshot.cash_flow, CASH_FLOW_METRICS),
    ]
    for title, periods, metrics in statements:
        st.subheader(title)
        frame = statement_frame(periods, metrics)
        if frame.empty:
            st.caption("Not reported.")
        else:
            st.dataframe(frame, use_container_width=True)

    if snapshot.peers:
        st.subheader("Peers")
        st.dataframe(pd.DataFrame(snapshot.peers), use_container_width=True, hide_index=True)


def render_profile(snapshot):
    profile = snapshot.company_profile
    if not profile:
        st.caption("No company profile returned.")
        return
    if profile.get("description"):
        st.markdown(profile["description"])
    if profile.get("businessModel"):
        st.markdown(f"**Business model:** {profile['businessModel']}")
    for title, key in [("Business Segments", "segments"), ("Clients", "clientele"), ("Geographic Split", "geographicSplit")]:
        rows = profile.get(key)
        if isinstance(rows, list) and rows:
            st.markdown(f"**{title}**")
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    trade = profile.get("tradeProfile")
    if isinstance(trade, dict) and trade:
        with st.expander("Trade Profile", expanded=False):
            st.json(trade)


def render_management(snapshot):
    management = snapshot.management
    if not management:
        st.caption("No management data returned.")
        return
    if management.get("executives"):
        st.markdown("**Executives**")
        st.dataframe(pd.DataFrame(management["executives"]), use_container_width=True, hide_index=True)
    for holder in management.get("stakeholders") or []:
        if not isinstance(holder, dict):
            continue
        st.markdown(f"**{holder.get('name', 'Stakeholder')}** · {holder.get('equityPercentage', '—')}%")
        breakdown = holder.get("breakdown")
        if isinstance(breakdown, list) and breakdown:
            st.dataframe(pd.DataFrame(breakdown), use_container_width=True, hide_index=True)
    if management.get("governanceReview"):
        st.markdown("**Governance Review**")
        st.markdown(management["governanceReview"])


def render_market_activity(snapshot):
    activity = snapshot.market_activity
    technicals = snapshot.technicals
    if activity.get("marketSentiment"):
        st.markdown(f"**Market sentiment:** {activity['marketSentiment']}")
    for title, key in [("Red Flags", "redFlags"), ("Corporate Actions", "corporateActions"),
                       ("Insider Trading", "insiderTrading"), ("Block & Bulk Deals", "blockDeals")]:
        rows = activity.get(key)
        if isinstance(rows, list) and rows:
            st.markdown(f"**{title}**")
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    if technicals:
        st.markdown("**Technicals**")
        col_ma, col_sr = st.columns(2)
        with col_ma:
            for label, key in [("200 DMA", "ma200"), ("100 DMA", "ma100"), ("50 DMA", "ma50"), ("21 EMA", "ema21")]:
                st.markdown(f"{label}: {technicals.get(key, '—')}")
        with col_sr:
            support = technicals.get("support") or {}
            resistance = technicals.get("resistance") or {}
            st.markdown("Support: " + ", ".join(str(support.get(k, "—")) for k in ("s1", "s2", "s3")))
            st.markdown("Resistance: " + ", ".join(str(resistance.get(k, "—")) for k in ("r1", "r2", "r3")))


def render_news(snapshot):
    earnings = snapshot.earnings
    if earnings.get("nextDate"):
        st.markdown(f"**Next earnings call:** {earnings['nextDate']}")
    for call in earnings.get("history") or []:
        if not isinstance(call, dict):
            continue
        with st.expander(f"{call.get('quarter', '')} · {call.get('date', '')} · {call.get('sentiment', '')}"):
            for takeaway in call.get("keyTakeaways") or []:
                st.markdown(f"- {takeaway}")
    st.subheader("Latest Developments")
    for item in snapshot.latest_insights or []:
        if not isinstance(item, dict):
            continue
        st.markdown(f"**{item.get('title', '')}** ({item.get('source', '')}, {item.get('date', '')}) · _{item.get('sentiment', '')}_")
        st.caption(item.get("summary", ""))


# --- Main ---
analysis: AnalysisState = st.session_state.analysis

if analysis.status == LoadingState.ERROR:
    st.error(analysis.error)
elif analysis.status == LoadingState.SUCCESS and analysis.snapshot is not None:
    snapshot = analysis.snapshot
    if st.session_state.dcf_session is None or st.session_state.dcf_session.snapshot is not snapshot:
        start_calculators(snapshot)

    render_header(snapshot)
    tabs = st.tabs(["Overview", "DCF Sandbox", "Sum of the Parts", "Financials", "Profile",
                    "Management", "Market Activity", "Earnings & News"])
    with tabs[0]:
        render_overview(snapshot)
    with tabs[1]:
        render_dcf(snapshot)
    with tabs[2]:
        render_sotp(snapshot)
    with tabs[3]:
        render_financials(snapshot)
    with tabs[4]:
        render_profile(snapshot)
    with tabs[5]:
        render_management(snapshot)
    with tabs[6]:
        render_market_activity(snapshot)
    with tabs[7]:
        render_news(snapshot)

    st.markdown("---")
    with st.expander("Methodology", expanded=False, icon="📚"):
        for src in SOURCE_CATALOG.values():
            st.markdown(
                f"**[{src['id']}]** **{src['label']}** — {src['description']}  \n"
                f"*Method: {src['method']}*  \n"
                f"[{src['url']}]({src['url']})"
            )
else:
    st.info("Enter a stock name or ticker and click 'Analyze' to begin.")
