"""Valuation engine: pure P&L arithmetic for holdings and sales.

Every function here is side-effect free: it takes primary fields (or an
immutable ``HoldingState``) and returns new values. Nothing reads the
clock except ``apply_quote`` when no ``as_of`` is given, and nothing
touches the database. All money is ``Decimal``; ``pl_percent`` is kept
at full precision and only rounded for display.

A holding's cost basis is its ``invested`` amount. It starts as
``buy_price * quantity`` and is carried exactly through averaging and
partial sells; ``buy_price`` is then the average cost at stored scale.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from integrations.market_data_protocol import QuoteError, QuoteResult
from services.exceptions import (
    InsufficientQuantityError,
    InvalidInputError,
    InvalidQuantityError,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Scale of the money columns; prices derived by division are held at this scale.
PRICE_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class HoldingValues:
    """Derived valuation fields of a holding."""

    invested: Decimal
    current_value: Decimal
    pl: Decimal
    pl_percent: Decimal


@dataclass(frozen=True)
class HoldingState:
    """Snapshot of one open position, detached from the ORM.

    The derived fields (``invested`` onwards) are only meaningful after
    the state has passed through one of the functions in this module.
    """

    ticker: str
    name: str
    quantity: int
    buy_price: Decimal
    current_price: Decimal
    purchase_date: date
    sector: Optional[str] = None
    day_change: Decimal = ZERO
    day_change_percent: Decimal = ZERO
    target_price: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    last_updated: Optional[datetime] = None
    invested: Decimal = ZERO
    current_value: Decimal = ZERO
    pl: Decimal = ZERO
    pl_percent: Decimal = ZERO


@dataclass(frozen=True)
class ClosedPositionValues:
    """The record produced by selling some or all of a holding."""

    ticker: str
    name: str
    sector: Optional[str]
    quantity: int
    buy_price: Decimal
    sell_price: Decimal
    invested: Decimal
    realized: Decimal
    pl: Decimal
    pl_percent: Decimal
    purchase_date: date
    closed_date: date
    holding_period: str


@dataclass(frozen=True)
class CloseOutResult:
    """Outcome of ``close_out``. ``remaining`` is None after a full sell."""

    closed_position: ClosedPositionValues
    remaining: Optional[HoldingState]


def pl_percent(pl: Decimal, invested: Decimal) -> Decimal:
    """Return ``pl / invested * 100``, or 0 when nothing was invested."""
    if invested <= ZERO:
        return ZERO
    return pl / invested * HUNDRED


def _derive(quantity: int, current_price: Decimal, invested: Decimal) -> HoldingValues:
    current_value = current_price * quantity
    pl = current_value - invested
    return HoldingValues(
        invested=invested,
        current_value=current_value,
        pl=pl,
        pl_percent=pl_percent(pl, invested),
    )


def value_holding(quantity: int, buy_price: Decimal, current_price: Decimal) -> HoldingValues:
    """Compute invested, current value and P&L for a position.

    Args:
        quantity: Shares held.
        buy_price: Average cost per share.
        current_price: Latest known price per share.

    Returns:
        ``invested = buy_price * quantity``,
        ``current_value = current_price * quantity``,
        ``pl = current_value - invested`` and ``pl_percent`` (0 when
        invested is 0).
    """
    return _derive(quantity, current_price, buy_price * quantity)


def _with_values(holding: HoldingState, values: HoldingValues) -> HoldingState:
    return replace(
        holding,
        invested=values.invested,
        current_value=values.current_value,
        pl=values.pl,
        pl_percent=values.pl_percent,
    )


def cost_basis(holding: HoldingState) -> Decimal:
    """Amount paid for the shares still held.

    The carried ``invested`` when set, else ``buy_price * quantity``.
    """
    if holding.invested > ZERO:
        return holding.invested
    return holding.buy_price * holding.quantity


def revalue(holding: HoldingState) -> HoldingState:
    """Re-derive current value and P&L; the cost basis is kept as is."""
    return _with_values(
        holding, _derive(holding.quantity, holding.current_price, cost_basis(holding))
    )


def restate(holding: HoldingState) -> HoldingState:
    """Re-derive every field, resetting the cost basis to ``buy_price * quantity``."""
    return _with_values(
        holding, value_holding(holding.quantity, holding.buy_price, holding.current_price)
    )


def validate_terms(
    quantity: int,
    buy_price: Decimal,
    current_price: Optional[Decimal] = None,
) -> None:
    """Check the primary fields of a holding.

    Raises:
        InvalidQuantityError: quantity is not a positive integer.
        InvalidInputError: buy_price is not positive or current_price is
                           negative.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(f"Quantity must be a positive whole number, got {quantity!r}")
    if buy_price is None or buy_price <= ZERO:
        raise InvalidInputError(f"Buy price must be positive, got {buy_price}", field="buy_price")
    if current_price is not None and current_price < ZERO:
        raise InvalidInputError(
            f"Current price cannot be negative, got {current_price}", field="current_price"
        )


def new_holding(
    ticker: str,
    name: str,
    quantity: int,
    buy_price: Decimal,
    purchase_date: date,
    current_price: Optional[Decimal] = None,
    sector: Optional[str] = None,
    target_price: Optional[Decimal] = None,
    stop_loss: Optional[Decimal] = None,
) -> HoldingState:
    """Build a valued HoldingState for a fresh buy.

    Without a quote the position is marked at its buy price.
    """
    validate_terms(quantity, buy_price, current_price)
    state = HoldingState(
        ticker=ticker,
        name=name,
        quantity=quantity,
        buy_price=buy_price,
        current_price=buy_price if current_price is None else current_price,
        purchase_date=purchase_date,
        sector=sector,
        target_price=target_price,
        stop_loss=stop_loss,
    )
    return restate(state)


def apply_quote(
    holding: HoldingState,
    quote: QuoteResult,
    as_of: Optional[datetime] = None,
) -> HoldingState:
    """Mark a holding to a fresh quote.

    Overwrites the quote-derived fields and re-derives current value and
    P&L. Quantity, buy price and purchase date are never touched. An
    error marker returns ``holding`` itself, unchanged, so the last known
    price stays in place.
    """
    if isinstance(quote, QuoteError):
        return holding

    updated = replace(
        holding,
        current_price=quote.current_price,
        day_change=quote.day_change,
        day_change_percent=quote.day_change_percent,
        name=quote.name or holding.name,
        sector=quote.sector or holding.sector,
        last_updated=as_of or datetime.now(timezone.utc),
    )
    return revalue(updated)


def average_in(holding: HoldingState, add_quantity: int, add_buy_price: Decimal) -> HoldingState:
    """Buy more of an already-held ticker at a new price.

    ``new_invested = invested + add_buy_price * add_quantity`` is carried
    exactly. The buy price becomes the volume-weighted average
    ``new_invested / new_quantity`` rounded to ``PRICE_QUANTUM``, so it
    survives storage unchanged; later revaluations use the carried
    ``invested``, never the rounded average.

    Raises:
        InvalidQuantityError: add_quantity is not positive.
        InvalidInputError: add_buy_price is not positive.
    """
    if isinstance(add_quantity, bool) or not isinstance(add_quantity, int) or add_quantity <= 0:
        raise InvalidQuantityError(
            f"Quantity to add must be a positive whole number, got {add_quantity!r}"
        )
    if add_buy_price is None or add_buy_price <= ZERO:
        raise InvalidInputError(
            f"Buy price must be positive, got {add_buy_price}", field="buy_price"
        )

    new_quantity = holding.quantity + add_quantity
    new_invested = cost_basis(holding) + add_buy_price * add_quantity
    updated = replace(
        holding,
        quantity=new_quantity,
        buy_price=(new_invested / new_quantity).quantize(PRICE_QUANTUM),
        invested=new_invested,
    )
    return revalue(updated)


def close_out(
    holding: HoldingState,
    sell_quantity: int,
    sell_price: Decimal,
    sell_date: date,
) -> CloseOutResult:
    """Sell ``sell_quantity`` shares of a holding at ``sell_price``.

    Returns the closed-position record and the remaining holding (None on
    a full sell). The sold shares take their pro-rata share of the cost
    basis; the remaining holding keeps the rest, its buy price and the
    last known current price.

    Raises:
        InvalidQuantityError: sell_quantity is not positive.
        InvalidInputError: sell_price is not positive, or sell_date is
                           before the purchase date.
        InsufficientQuantityError: sell_quantity exceeds the holding.
    """
    if isinstance(sell_quantity, bool) or not isinstance(sell_quantity, int) or sell_quantity <= 0:
        raise InvalidQuantityError(
            f"Quantity to sell must be a positive whole number, got {sell_quantity!r}"
        )
    if sell_price is None or sell_price <= ZERO:
        raise InvalidInputError(f"Sell price must be positive, got {sell_price}", field="sell_price")
    if sell_quantity > holding.quantity:
        raise InsufficientQuantityError(sell_quantity, holding.quantity)
    if sell_date < holding.purchase_date:
        raise InvalidInputError(
            f"Sell date {sell_date} is before purchase date {holding.purchase_date}",
            field="sell_date",
        )

    basis = cost_basis(holding)
    if sell_quantity == holding.quantity:
        invested = basis
    else:
        invested = (basis * sell_quantity / holding.quantity).quantize(PRICE_QUANTUM)
    realized = sell_price * sell_quantity
    pl = realized - invested

    closed = ClosedPositionValues(
        ticker=holding.ticker,
        name=holding.name,
        sector=holding.sector,
        quantity=sell_quantity,
        buy_price=holding.buy_price,
        sell_price=sell_price,
        invested=invested,
        realized=realized,
        pl=pl,
        pl_percent=pl_percent(pl, invested),
        purchase_date=holding.purchase_date,
        closed_date=sell_date,
        holding_period=holding_period(holding.purchase_date, sell_date),
    )

    if sell_quantity == holding.quantity:
        return CloseOutResult(closed_position=closed, remaining=None)

    remaining = revalue(
        replace(holding, quantity=holding.quantity - sell_quantity, invested=basis - invested)
    )
    return CloseOutResult(closed_position=closed, remaining=remaining)


def _count(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def humanize_holding_period(days: int) -> str:
    """Render a day count as a short duration.

    Months are 30 days and years 365 days:
    ``0 -> "0 days"``, ``1 -> "1 day"``, ``45 -> "1 month 15 days"``,
    ``400 -> "1 year 1 month"``. Spans of a year or more drop the days.
    """
    if days < 0:
        raise InvalidInputError(f"Holding period cannot be negative, got {days} days")
    if days == 0:
        return "0 days"
    if days < 30:
        return _count(days, "day")
    if days < 365:
        text = _count(days // 30, "month")
        if days % 30 > 0:
            text += " " + _count(days % 30, "day")
        return text

    text = _count(days // 365, "year")
    months = (days % 365) // 30
    if months > 0:
        text += " " + _count(months, "month")
    return text


def holding_period(start: date, end: date) -> str:
    """Humanized calendar-day span between two dates."""
    return humanize_holding_period((end - start).days)
