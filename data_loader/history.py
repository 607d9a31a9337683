#!/usr/bin/env python3
"""
history.py – quote + historical bars from FMP
=============================================
• `retrieve_bars()` hits the *historical* endpoints (daily EOD or
  intraday chart) and returns `Bar`s oldest → newest.
• `fetch_quote()` uses the lightweight */quote* endpoint and turns it
  into a `Tick`; `last` keeps the most recent one for the paper broker.

Both try `api/v3` first and the `stable` API second.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd, requests

from shared.errors  import BarSourceError, FeedError
from shared.logging import get_logger
from shared.models  import Bar, Tick
from shared.utils   import to_utc

log = get_logger("data_loader")

BASE_URL = "https://financialmodelingprep.com"
APIS     = ("api/v3", "stable")
INTRADAY = {"1min", "5min", "15min", "30min", "1hour", "4hour"}

# ------------------------ FMP ENDPOINTS --------------------------------
def _hist_url(api: str, sym: str, granularity: str) -> str:
    if granularity == "daily":
        if api == "stable":
            return f"{BASE_URL}/{api}/historical-price-eod/full?symbol={sym}"
        return f"{BASE_URL}/{api}/historical-price-full/{sym}"
    if api == "stable":
        return f"{BASE_URL}/{api}/historical-chart/{granularity}?symbol={sym}"
    return f"{BASE_URL}/{api}/historical-chart/{granularity}/{sym}"

def _quote_url(api: str, sym: str) -> str:
    if api == "stable":
        return f"{BASE_URL}/{api}/quote?symbol={sym}"
    return f"{BASE_URL}/{api}/quote/{sym}"

def _rows(payload: Any) -> List[Dict[str, Any]]:
    """v3 daily wraps rows in {"historical": [...]}; everything else is a list."""
    if isinstance(payload, dict):
        payload = payload.get("historical", [])
    return payload if isinstance(payload, list) else []


class FMPClient:

    def __init__(self, api_key: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.last: Optional[Tick] = None

    def _get(self, url: str, params: Dict[str, str]) -> Any:
        resp = self.session.get(url, params={**params, "apikey": self.api_key},
                                timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    # --------------------- HISTORY (warm-up) ---------------------------
    def retrieve_bars(self, instrument: str, granularity: str,
                      start: datetime, end: datetime) -> List[Bar]:
        if granularity != "daily" and granularity not in INTRADAY:
            raise BarSourceError(f"unsupported granularity {granularity!r}")

        params = {"from": f"{start:%Y-%m-%d}", "to": f"{end:%Y-%m-%d}"}
        rows: List[Dict[str, Any]] = []
        for api in APIS:
            try:
                rows = _rows(self._get(_hist_url(api, instrument, granularity), params))
            except (requests.RequestException, ValueError) as exc:
                log.warning("%s history via %s failed – %s", instrument, api, exc)
                continue
            if rows:
                break
        if not rows:
            raise BarSourceError(f"No historical data for {instrument}")

        df = pd.DataFrame(rows).rename(columns={"date": "timestamp"})
        if "timestamp" not in df or "close" not in df:
            raise BarSourceError(f"{instrument} history rows lack date/close")
        for col in ("open", "high", "low", "close"):
            if col in df:
                df[col] = pd.to_numeric(df[col], errors="coerce")
        df = df.dropna(subset=["close"])
        try:
            df["timestamp"] = df["timestamp"].apply(to_utc)
        except ValueError as exc:
            raise BarSourceError(f"{instrument} history has bad dates – {exc}") from exc
        df = df[(df["timestamp"] >= to_utc(start)) & (df["timestamp"] <= to_utc(end))]
        df = df.sort_values("timestamp").reset_index(drop=True)   # oldest→newest

        return [
            Bar(timestamp=row.timestamp, close=float(row.close),
                open=_opt(row, "open"), high=_opt(row, "high"), low=_opt(row, "low"))
            for row in df.itertuples(index=False)
        ]

    # --------------------- LIVE QUOTE ----------------------------------
    def fetch_quote(self, instrument: str) -> Tick:
        for api in APIS:
            try:
                j = self._get(_quote_url(api, instrument), {})
            except (requests.RequestException, ValueError) as exc:
                log.warning("%s quote via %s failed – %s", instrument, api, exc)
                continue
            if not j:
                continue
            q = j[0] if isinstance(j, list) else j
            try:
                tick = Tick(timestamp=to_utc(q["timestamp"]),
                            bid=float(q.get("bid") or q["price"]),
                            ask=float(q["ask"]) if q.get("ask") else None)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                log.warning("%s quote via %s malformed – %r (%s)", instrument, api, q, exc)
                continue
            self.last = tick
            return tick
        raise FeedError(f"No usable quote for {instrument}")


def _opt(row: Any, name: str) -> Optional[float]:
    val = getattr(row, name, None)
    return None if val is None or pd.isna(val) else float(val)
