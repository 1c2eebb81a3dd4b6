"""Market quote providers."""

from finledger.services.quotes.interface import QuoteProviderError, QuoteProviderInterface
from finledger.services.quotes.yahoo import YahooFinanceQuoteService

__all__ = [
    "QuoteProviderError",
    "QuoteProviderInterface",
    "YahooFinanceQuoteService",
]
