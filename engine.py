# engine.py
"""
ValueInvest Engine
==================
Uses Google Gemini (with Google Search grounding) to assemble the financial
snapshot for a stock. The model is asked for one JSON document; this module
builds the prompt, calls the API, cleans and parses the reply, and hands the
payload to the data adapter.

Any failure on the provider side surfaces as a single AnalysisError.
"""

import os
import re
import json
import logging
from pathlib import Path
from dotenv import load_dotenv
from google import genai
from google.genai import types
from data_adapter import REPORT_TYPES, FinancialSnapshot, snapshot_from_payload

logger = logging.getLogger(__name__)

_genai_client: "genai.Client | None" = None

# Load local .env regardless of launch directory so the Gemini key is consistently available.
load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

_GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

QUOTA_ERROR_MARKERS = ["resource_exhausted", "quota", "rate limit", "too many requests", "429"]


class AnalysisError(Exception):
    """The AI provider failed or returned something we cannot use."""


# Key -> description. Rendered into the prompt so the model returns exactly these fields.
ANALYSIS_SCHEMA = {
    "symbol": "string, ticker symbol",
    "name": "string, company name",
    "price": "number, current live price from Google Search",
    "previousOpen": "number, opening price of the previous session",
    "previousClose": "number, previous close",
    "openPrice": "number, today's open",
    "high52Week": "number",
    "low52Week": "number",
    "currency": "string, e.g. USD or INR",
    "listingDate": "string",
    "faceValue": "number",
    "bookValue": "number, book value per share",
    "marketCapCategory": "string: Large Cap, Mid Cap, Small Cap or Micro Cap",
    "sector": "string",
    "industry": "string",
    "pe": "number", "pb": "number", "dividendYield": "number, percent",
    "marketCap": "string, e.g. '2.5T'", "ebitda": "string, e.g. '1.2B'",
    "roce": "number, percent", "roe": "number, percent", "eps": "number",
    "pat": "string", "freeCashFlow": "string", "opm": "number, percent",
    "revenue": "string", "revenueGrowth": "number, percent YoY",
    "sectorPe": "number", "industryPe": "number",
    "fcfPerShare": "number, free cash flow per share",
    "growthRate": "number, base-case FCF growth percent",
    "discountRate": "number, percent",
    "terminalRate": "number, terminal growth percent",
    "intrinsicValue": "number, 2-stage DCF value per share",
    "reverseDcfRate": "number, growth percent implied by the current price",
    "salesGrowth": "object {tenYear, fiveYear, threeYear, recent} of percent strings",
    "profitGrowth": "object {tenYear, fiveYear, threeYear, recent}",
    "stockPriceCagr": "object {tenYear, fiveYear, threeYear, recent}",
    "roeHistory": "object {tenYear, fiveYear, threeYear, recent}",
    "peers": "array of {symbol, name, price, pe, marketCap, roe, dividendYield}",
    "financials": (
        "object {profitLoss: [{year, sales, expenses, operatingProfit, opm, otherIncome, interest, "
        "depreciation, profitBeforeTax, tax, netProfit, eps, dividendPayout}], "
        "balanceSheet: [{year, equityCapital, reserves, borrowings, otherLiabilities, totalLiabilities, "
        "fixedAssets, cwip, investments, otherAssets, totalAssets}], "
        "cashFlow: [{year, cashFromOperating, cashFromInvesting, cashFromFinancing, netCashFlow}]}"
    ),
    "earnings": "object {history: [{date, quarter, keyTakeaways: [string], sentiment}], nextDate}",
    "latestInsights": "array of {title, summary, source, date, sentiment}",
    "companyProfile": (
        "object {description, businessModel, segments: [{name, description, revenueShare}], "
        "clientele: [{name, percentage, sector, relationDetails, isKeyClient}], "
        "tradeProfile: {exportRevenuePercentage, importMaterialPercentage, topExportCountries, "
        "topImportCountries, exportProducts, importMaterials, currencyRisk}, "
        "geographicSplit: [{region, percentage}]}"
    ),
    "marketActivity": (
        "object {corporateActions: [{type, date, details}], insiderTrading: [{date, person, type, "
        "quantity, price, value}], blockDeals: [{date, clientName, type, quantity, price}], "
        "redFlags: [{severity, category, description}], marketSentiment}"
    ),
    "grahamNumber": "number", "pegRatio": "number", "earningsYield": "number, percent",
    "debtToEquity": "number", "interestCoverage": "number",
    "grahamGrowthValue": "number", "piotroskiFScore": "number 0-9", "evToEbitda": "number",
    "moatRating": "string: Wide, Narrow or None", "moatSource": "string",
    "ownerEarningsPerShare": "number", "buffettTenCapPrice": "number",
    "roic": "number, percent", "wacc": "number, percent", "shareBuybackYield": "number, percent",
    "segments": "array of {name, revenue, ebitda, valuationMultiple, growthRate, narrative}; absolute numbers",
    "netDebt": "number, absolute",
    "totalShares": "number, shares outstanding",
    "management": (
        "object {executives: [{name, role, tenure, background}], stakeholders: [{name, "
        "equityPercentage, type, breakdown: [{name, percentage}]}], governanceReview}"
    ),
    "technicals": "object {ma200, ma100, ma50, ema21, support: {s1, s2, s3}, resistance: {r1, r2, r3}}",
    "scenarios": "object {bull, base, bear}, each {price, narrative, growthRate}",
    "growthFactors": "array of strings",
    "riskFactors": "array of strings",
    "financialReview": "string",
}


def _sanitize_valuation_language(value):
    """
    Prevent overconfident valuation phrasing in AI text.
    Intrinsic value should always be framed as model-implied under assumptions.
    """
    if isinstance(value, str):
        text = value
        replacements = [
            (r"(?i)\bfundamental floor\b", "model-implied value under current assumptions"),
            (r"(?i)\bvaluation floor\b", "model-implied value under current assumptions"),
            (r"(?i)\bguaranteed upside\b", "model-implied upside under current assumptions"),
        ]
        for pattern, replacement in replacements:
            text = re.sub(pattern, replacement, text)
        return text
    if isinstance(value, list):
        return [_sanitize_valuation_language(v) for v in value]
    if isinstance(value, dict):
        return {k: _sanitize_valuation_language(v) for k, v in value.items()}
    return value


def _redact_api_secrets(text: str, known_secret: str = "") -> str:
    if not isinstance(text, str):
        return text
    redacted = re.sub(r"(key=)[^&\s]+", r"\1[REDACTED]", text, flags=re.IGNORECASE)
    secret = (known_secret or "").strip()
    if secret:
        redacted = redacted.replace(secret, "[REDACTED]")
    return redacted


def is_quota_or_rate_limit_error(error_text: str) -> bool:
    text = str(error_text or "").lower()
    return any(marker in text for marker in QUOTA_ERROR_MARKERS)


def config_genai():
    """Configures the Gemini API client."""
    global _genai_client
    api_key = os.getenv("GEMINI_API_KEY")
    if api_key:
        _genai_client = genai.Client(api_key=api_key)
    return api_key


def get_gemini_model() -> tuple:
    """Returns (client, model_name) for use with the google.genai SDK."""
    return _genai_client, _GEMINI_MODEL


def build_analysis_prompt(query: str, report_type: str) -> str:
    schema_lines = "\n".join(f'    "{key}": {desc}' for key, desc in ANALYSIS_SCHEMA.items())
    return f"""
    Perform a comprehensive value investing analysis for the stock: "{query}".

    1. REAL-TIME PRICE:
       - Search for "stock price {query}" and "{query} share price today google finance".
       - Use the live price, not yesterday's close (unless the market is closed) and not prices from old news.
       - Make sure the currency matches the primary listing exchange.

    2. MARKET DATA: previous open, previous close, today's open, 52-week high/low, listing date,
       face value, book value, market cap category, sector and industry.

    3. COMPANY PROFILE & CLIENTS: what the company actually does, business segments with revenue share,
       key clients vs other major clients, revenue by geography, exported products and imported materials.

    4. MARKET ACTIVITY: corporate actions in the last year, insider trades and pledges in the last
       6 months, block/bulk deals, red flags (auditor resignations, surveillance lists, tax disputes).

    5. FINANCIALS ({report_type.upper()}): use {report_type} figures. Use TTM where available,
       otherwise the last fiscal year.

    6. COMPOUNDED GROWTH TABLES: sales growth, profit growth, stock price CAGR and ROE over
       10 years, 5 years, 3 years and the recent period.

    7. PEERS: 3-5 direct competitors with market cap, P/E, ROE, dividend yield and price.

    8. HISTORICAL STATEMENTS: annual profit & loss, balance sheet and cash flows from the earliest
       available year.

    9. EARNINGS & INSIGHTS: last 2-3 earnings calls with takeaways and sentiment, next call date,
       and 3 recent developments with sentiment.

    10. CALCULATIONS:
       - 2-stage DCF intrinsic value, reverse DCF implied growth, bull/base/bear scenarios.
       - Graham Number, Graham Growth Value, PEG, earnings yield, Piotroski F-Score, EV/EBITDA,
         debt/equity, interest coverage.
       - Moat rating, owner earnings per share, Buffett ten-cap price, ROIC vs WACC, buyback yield.
       - SUM OF THE PARTS: break revenue and EBITDA down by segment and assign each an EV/EBITDA
         multiple appropriate to its industry. Provide net debt and total shares outstanding.

    Return ONLY one JSON object with these keys (no prose, no Markdown):
{schema_lines}

    All numeric values must be numbers. Percentages are whole numbers or one decimal (12.5 means 12.5%).
    """


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    return text.strip()


def parse_analysis_response(text: str) -> dict:
    """
    Parse the model reply into a dict.

    Raises:
        AnalysisError: reply is empty or not a JSON object
    """
    if not text or not text.strip():
        raise AnalysisError("No response from Gemini")

    cleaned = _strip_code_fences(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        # Grounded replies sometimes wrap the object in a sentence.
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise AnalysisError("Gemini returned data that could not be parsed as JSON") from None
        try:
            payload = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError:
            raise AnalysisError("Gemini returned data that could not be parsed as JSON") from None

    if not isinstance(payload, dict):
        raise AnalysisError("Gemini returned JSON that is not an analysis object")
    return payload


def analyze_stock(query: str, report_type: str = "consolidated") -> FinancialSnapshot:
    """
    Ask Gemini for the full analysis bundle of `query` and return the parsed snapshot.

    Raises:
        ValueError: blank query or unknown report type
        AnalysisError: missing API key, API failure, or unusable reply
    """
    query = (query or "").strip()
    if not query:
        raise ValueError("Please enter a stock name or ticker")
    if report_type not in REPORT_TYPES:
        raise ValueError(f"Unknown report type '{report_type}'. Expected one of {REPORT_TYPES}")

    try:
        api_key = config_genai()
    except Exception as e:
        detail = _redact_api_secrets(str(e), os.getenv("GEMINI_API_KEY", ""))
        logger.error("Gemini client setup failed: %s", detail)
        raise AnalysisError(f"Could not configure Gemini client: {detail}") from e
    if not api_key:
        raise AnalysisError("API key not found. Add `GEMINI_API_KEY=your_key` to `.env` and restart.")

    client, model_name = get_gemini_model()
    logger.info("Requesting %s analysis for %r from %s", report_type, query, model_name)
    try:
        response = client.models.generate_content(
            model=model_name,
            contents=build_analysis_prompt(query, report_type),
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
                temperature=0,
            ),
        )
    except Exception as e:
        detail = _redact_api_secrets(str(e), api_key)
        logger.error("Gemini request failed for %r: %s", query, detail)
        if is_quota_or_rate_limit_error(detail):
            raise AnalysisError("Gemini quota or rate limit reached. Please try again later.") from e
        raise AnalysisError(f"AI Error: {detail}") from e

    payload = _sanitize_valuation_language(parse_analysis_response(response.text))
    try:
        snapshot = snapshot_from_payload(payload, report_type=report_type)
    except ValueError as e:
        raise AnalysisError(str(e)) from e

    logger.info("Analysis for %r parsed: %s @ %s %s", query, snapshot.symbol, snapshot.currency, snapshot.price)
    return snapshot
