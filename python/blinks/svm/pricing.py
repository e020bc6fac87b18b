"""Fiat to SOL conversion with a slippage buffer."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..constants import LAMPORTS_PER_SOL, SLIPPAGE
from ..interfaces import RateSource
from .split import PaymentSplit, distribute_amount

logger = logging.getLogger(__name__)

CENTS_PER_USD = 100


@dataclass(frozen=True)
class RateQuote:
    """US dollars per SOL.

    ``degraded`` is set when the rate source failed and the zero fallback
    rate is in use.
    """

    usd_per_sol: Decimal
    degraded: bool = False


class CurrencyConverter:
    """Converts US cents to lamports using a live SOL/USD rate.

    The buyer pays ``1 + slippage`` times the nominal amount. When the rate
    source fails, conversion continues with a zero rate (every amount
    converts to zero lamports) instead of blocking checkout; each fallback
    is logged and counted in ``fallback_count``.
    """

    def __init__(self, rate_source: RateSource, slippage: Decimal = SLIPPAGE):
        self._rate_source = rate_source
        self._slippage = Decimal(slippage)
        self.fallback_count = 0

    @property
    def slippage(self) -> Decimal:
        return self._slippage

    async def get_rate(self) -> RateQuote:
        try:
            rate = Decimal(str(await self._rate_source.get_sol_to_usd_rate()))
        except Exception as e:
            self.fallback_count += 1
            logger.warning("SOL/USD rate unavailable, falling back to zero rate: %s", e)
            return RateQuote(usd_per_sol=Decimal(0), degraded=True)
        return RateQuote(usd_per_sol=rate)

    def usd_cents_to_lamports(self, cents: int, rate: RateQuote, slippage: bool = True) -> int:
        """Convert cents to lamports, rounding half up.

        lamports = cents * 1e7 * (1 + slippage) / usd_per_sol
        """
        if rate.usd_per_sol <= 0:
            return 0
        lamports_per_cent = Decimal(LAMPORTS_PER_SOL) / CENTS_PER_USD
        amount = Decimal(cents) * lamports_per_cent
        if slippage:
            amount *= 1 + self._slippage
        return int((amount / rate.usd_per_sol).to_integral_value(rounding=ROUND_HALF_UP))

    def usd_cents_to_sol(self, cents: int, rate: RateQuote) -> Decimal:
        """Display price in SOL, slippage included."""
        if rate.usd_per_sol <= 0:
            return Decimal(0)
        usd = Decimal(cents) / CENTS_PER_USD
        return usd * (1 + self._slippage) / rate.usd_per_sol

    def sol_to_usd(self, sol: Decimal, rate: RateQuote) -> Decimal:
        return sol * rate.usd_per_sol

    def split_to_lamports(self, shares: dict[str, int], rate: RateQuote) -> PaymentSplit:
        """Convert a cents split into a lamport split.

        The total is converted once and distributed in proportion to the
        cents shares, so the lamport split sums to exactly the converted total.
        """
        total_lamports = self.usd_cents_to_lamports(sum(shares.values()), rate)
        return PaymentSplit(amounts=distribute_amount(total_lamports, shares))
