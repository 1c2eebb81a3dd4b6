"""
Yahoo Finance quote provider.

yfinance is synchronous, so each lookup runs in a worker thread and symbols
are fetched concurrently in fixed-size batches to stay polite to the API.
"""

import asyncio
from typing import Iterable, Optional

import structlog
import yfinance as yf
from tenacity import retry, stop_after_attempt, wait_exponential

from finledger.config import get_settings
from finledger.models.alerts import Quote
from finledger.services.quotes.interface import QuoteProviderError, QuoteProviderInterface

logger = structlog.get_logger(__name__)


class YahooFinanceQuoteService(QuoteProviderInterface):

    def __init__(self, batch_size: Optional[int] = None):
        settings = get_settings().quotes
        self._batch_size = settings.batch_size if batch_size is None else batch_size
        self._default_currency = settings.default_currency

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    def _fetch_quote(self, symbol: str) -> Optional[Quote]:
        """Blocking lookup of one symbol. Returns None when there is no data."""
        ticker = yf.Ticker(symbol)
        data = ticker.history(period="5d")

        if data.empty:
            return None

        closes = data["Close"].dropna()
        if closes.empty:
            return None

        price = float(closes.iloc[-1])
        previous_close = float(closes.iloc[-2]) if len(closes) > 1 else None
        return Quote(
            symbol=symbol,
            price=price,
            previous_close=previous_close,
            currency=self._default_currency,
        )

    async def get_quotes(self, symbols: Iterable[str]) -> dict[str, Quote]:
        unique = list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
        quotes: dict[str, Quote] = {}
        failures = 0

        for start in range(0, len(unique), self._batch_size):
            batch = unique[start:start + self._batch_size]
            results = await asyncio.gather(
                *[asyncio.to_thread(self._fetch_quote, symbol) for symbol in batch],
                return_exceptions=True,
            )

            for symbol, result in zip(batch, results):
                if isinstance(result, Exception):
                    logger.warning("quote_fetch_failed", symbol=symbol, error=str(result))
                    failures += 1
                    continue
                if result is None or result.price <= 0:
                    logger.info("quote_unavailable", symbol=symbol)
                    continue
                quotes[symbol] = result

        if unique and failures == len(unique):
            raise QuoteProviderError(f"All {failures} quote lookups failed")

        logger.info("quotes_fetched", requested=len(unique), priced=len(quotes))
        return quotes
