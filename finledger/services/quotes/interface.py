"""
Quote Provider Interface

The alert evaluator and the SIP sync only need "latest price for these
symbols". Any market data source can sit behind this interface.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from finledger.models.alerts import Quote


class QuoteProviderInterface(ABC):

    @abstractmethod
    async def get_quotes(self, symbols: Iterable[str]) -> dict[str, Quote]:
        """
        Fetch the latest quote for each symbol.

        Symbols the provider could not price are simply absent from the
        result. A partial result is never an error.

        Raises:
            QuoteProviderError: If the provider could not be reached at all
        """
        pass


class QuoteProviderError(Exception):
    """The quote provider failed as a whole (not just for one symbol)."""
    pass
