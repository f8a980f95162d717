"""
sources.py — Methodology Catalog for ValueInvest Pro
=====================================================
Wikipedia-style citation registry. Each entry maps a short key to metadata
that the UI uses to render numbered footnotes and a collapsible methodology
expander under the valuation cards.

Usage:
    from sources import SOURCE_CATALOG, cite
    src = SOURCE_CATALOG["gordon_growth"]
    st.markdown(f"[{src['id']}] {src['label']} — {src['description']}")
"""

SOURCE_CATALOG = {
    "provider": {
        "id": 1,
        "label": "AI Financial Snapshot",
        "description": (
            "Price, ratios, statements, scenarios and segment data are assembled by Google Gemini "
            "with Google Search grounding. Figures are not independently verified."
        ),
        "url": "https://ai.google.dev/gemini-api/docs/grounding",
        "method": "Gemini · Google Search tool",
    },
    "dcf": {
        "id": 2,
        "label": "Two-Stage DCF",
        "description": (
            "FCF per share is compounded for 10 years, each year discounted at (1 + r)^t. "
            "With decay on, growth falls linearly from the scenario rate toward the long-run target."
        ),
        "url": "https://en.wikipedia.org/wiki/Discounted_cash_flow",
        "method": "Per-share FCF projection",
    },
    "gordon_growth": {
        "id": 3,
        "label": "Gordon Growth Terminal Value",
        "description": (
            "TV = FCF₁₀ × (1 + g) / (r − g), with (r − g) floored at 0.1% so the value stays finite."
        ),
        "url": "https://en.wikipedia.org/wiki/Dividend_discount_model",
        "method": "Perpetuity growth",
    },
    "exit_multiple": {
        "id": 4,
        "label": "Exit Multiple Terminal Value",
        "description": (
            "TV = FCF₁₀ × exit EV/FCF multiple. Growth decays toward a 3% GDP proxy under this method."
        ),
        "url": "https://en.wikipedia.org/wiki/Terminal_value_(finance)",
        "method": "Exit multiple",
    },
    "sotp": {
        "id": 5,
        "label": "Sum of the Parts",
        "description": (
            "Each segment's EBITDA × its own EV/EBITDA multiple, summed to EV; "
            "equity = EV − net debt; target price = equity / shares outstanding."
        ),
        "url": "https://en.wikipedia.org/wiki/Sum-of-the-parts_analysis",
        "method": "Segment EV/EBITDA",
    },
    "graham_number": {
        "id": 6,
        "label": "Graham Number",
        "description": "√(22.5 × EPS × Book Value per Share).",
        "url": "https://en.wikipedia.org/wiki/Graham_number",
        "method": "Benjamin Graham",
    },
    "graham_growth": {
        "id": 7,
        "label": "Graham Growth Value",
        "description": "EPS × (8.5 + 2g), Graham's revised growth formula.",
        "url": "https://en.wikipedia.org/wiki/Benjamin_Graham_formula",
        "method": "Benjamin Graham",
    },
    "lynch": {
        "id": 8,
        "label": "Lynch Fair Value",
        "description": "Fair P/E equals the growth rate, so fair value = EPS × revenue growth %.",
        "url": "https://en.wikipedia.org/wiki/PEG_ratio",
        "method": "Peter Lynch",
    },
    "ten_cap": {
        "id": 9,
        "label": "Buffett Ten-Cap Price",
        "description": "Price at which owner earnings yield 10%: owner earnings per share × 10.",
        "url": "https://en.wikipedia.org/wiki/Owner_earnings",
        "method": "Warren Buffett",
    },
    "owner_earnings": {
        "id": 10,
        "label": "Owner Earnings",
        "description": "Net income + D&A − maintenance capex; yield = owner earnings per share / price.",
        "url": "https://en.wikipedia.org/wiki/Owner_earnings",
        "method": "Warren Buffett, 1986 letter",
    },
    "fscore": {
        "id": 11,
        "label": "Piotroski F-Score",
        "description": "Nine binary tests of profitability, leverage and efficiency (0–9).",
        "url": "https://en.wikipedia.org/wiki/Piotroski_F-score",
        "method": "Piotroski (2000)",
    },
    "ev_ebitda": {
        "id": 12,
        "label": "EV/EBITDA",
        "description": "Enterprise value / EBITDA; below 10x reads cheap, 10–20x fair, above 20x expensive.",
        "url": "https://en.wikipedia.org/wiki/EV/Ebitda",
        "method": "Relative valuation",
    },
    "roic_wacc": {
        "id": 13,
        "label": "ROIC vs WACC",
        "description": "A positive ROIC − WACC spread means each unit of capital earns more than it costs.",
        "url": "https://en.wikipedia.org/wiki/Return_on_invested_capital",
        "method": "Economic value added",
    },
}


def cite(key: str) -> str:
    """Inline footnote marker for `key`, e.g. "[3]". Unknown keys render nothing."""
    src = SOURCE_CATALOG.get(key)
    return f"[{src['id']}]" if src else ""
