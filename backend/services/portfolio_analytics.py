"""Portfolio-level aggregates over holdings, watchlist entries and closed positions.

Functions here only read the stored derived fields (``invested``,
``current_value``, ``pl``...) computed by the valuation engine; they never
recompute per-holding values themselves.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from models import ClosedPosition, Holding, WatchlistEntry
from services.valuation import ZERO, pl_percent

DEFAULT_TOP_PERFORMERS = 3
DEFAULT_TOP_HOLDINGS = 5
DEFAULT_RECENT_ACTIVITIES = 6
UNCLASSIFIED_SECTOR = "Other"


@dataclass(frozen=True)
class PortfolioSummary:
    total_invested: Decimal
    total_current_value: Decimal
    total_pl: Decimal
    total_pl_percent: Decimal
    todays_pl: Decimal
    holdings_count: int


@dataclass(frozen=True)
class SectorAllocation:
    sector: str
    value: Decimal
    percent: Decimal


@dataclass(frozen=True)
class ClosedPositionsSummary:
    total_realized: Decimal
    total_profit: Decimal
    total_positions: int
    average_return: Decimal


@dataclass(frozen=True)
class Activity:
    type: str
    ticker: str
    title: str
    subtitle: str
    activity_date: date


def _money(value: Decimal) -> str:
    return f"₹{value:,.2f}"


def portfolio_summary(holdings: Sequence[Holding]) -> PortfolioSummary:
    """Totals across open holdings.

    ``todays_pl`` is the sum of each holding's per-share day change times
    its quantity.
    """
    total_invested = sum((h.invested or ZERO for h in holdings), ZERO)
    total_current_value = sum((h.current_value or ZERO for h in holdings), ZERO)
    total_pl = total_current_value - total_invested
    todays_pl = sum(((h.day_change or ZERO) * h.quantity for h in holdings), ZERO)
    return PortfolioSummary(
        total_invested=total_invested,
        total_current_value=total_current_value,
        total_pl=total_pl,
        total_pl_percent=pl_percent(total_pl, total_invested),
        todays_pl=todays_pl,
        holdings_count=len(holdings),
    )


def top_performers(
    holdings: Sequence[Holding], limit: int = DEFAULT_TOP_PERFORMERS
) -> list[Holding]:
    """Holdings with the best day change percent first."""
    ranked = sorted(holdings, key=lambda h: h.day_change_percent or ZERO, reverse=True)
    return ranked[:limit]


def top_holdings(
    holdings: Sequence[Holding], limit: int = DEFAULT_TOP_HOLDINGS
) -> list[Holding]:
    """Largest holdings by current value."""
    ranked = sorted(holdings, key=lambda h: h.current_value or ZERO, reverse=True)
    return ranked[:limit]


def sector_allocation(holdings: Sequence[Holding]) -> list[SectorAllocation]:
    """Share of current value per sector, largest first.

    Holdings without a sector count as "Other". Returns an empty list
    when the portfolio has no value.
    """
    total_value = sum((h.current_value or ZERO for h in holdings), ZERO)
    if total_value <= ZERO:
        return []

    totals: dict[str, Decimal] = {}
    for h in holdings:
        sector = h.sector or UNCLASSIFIED_SECTOR
        totals[sector] = totals.get(sector, ZERO) + (h.current_value or ZERO)

    allocation = [
        SectorAllocation(sector=sector, value=value, percent=value / total_value * 100)
        for sector, value in totals.items()
    ]
    allocation.sort(key=lambda a: (-a.value, a.sector))
    return allocation


def closed_positions_summary(positions: Sequence[ClosedPosition]) -> ClosedPositionsSummary:
    """Totals across closed positions.

    ``average_return`` is total profit over total invested, so larger
    sales weigh more than small ones.
    """
    total_realized = sum((p.realized for p in positions), ZERO)
    total_profit = sum((p.pl for p in positions), ZERO)
    total_invested = sum((p.invested for p in positions), ZERO)
    return ClosedPositionsSummary(
        total_realized=total_realized,
        total_profit=total_profit,
        total_positions=len(positions),
        average_return=pl_percent(total_profit, total_invested),
    )


def recent_activity(
    holdings: Sequence[Holding],
    watchlist: Sequence[WatchlistEntry],
    closed_positions: Sequence[ClosedPosition],
    limit: int = DEFAULT_RECENT_ACTIVITIES,
) -> list[Activity]:
    """Buys, watchlist additions and sales, newest first."""
    activities = []
    for h in holdings:
        activities.append(
            Activity(
                type="buy",
                ticker=h.ticker,
                title=f"Bought {h.ticker}",
                subtitle=f"{h.quantity} shares at {_money(h.buy_price)}",
                activity_date=h.purchase_date,
            )
        )
    for w in watchlist:
        activities.append(
            Activity(
                type="watchlist",
                ticker=w.ticker,
                title=f"Added {w.ticker} to watchlist",
                subtitle=f"Monitoring at {_money(w.current_price or ZERO)}",
                activity_date=w.added_date,
            )
        )
    for p in closed_positions:
        if p.pl >= ZERO:
            outcome = f"+{_money(p.pl)} profit"
        else:
            outcome = f"-{_money(-p.pl)} loss"
        activities.append(
            Activity(
                type="sell",
                ticker=p.ticker,
                title=f"Sold {p.ticker}",
                subtitle=f"{p.quantity} shares - {outcome}",
                activity_date=p.closed_date,
            )
        )

    activities.sort(key=lambda a: a.activity_date, reverse=True)
    return activities[:limit]
