"""Unit tests for portfolio analytics."""

from datetime import date
from decimal import Decimal

from services import portfolio_analytics
from tests.fixtures import create_holding, create_watchlist_entry


class TestPortfolioSummary:
    def test_empty_portfolio(self):
        summary = portfolio_analytics.portfolio_summary([])

        assert summary.total_invested == Decimal("0")
        assert summary.total_pl_percent == Decimal("0")
        assert summary.holdings_count == 0

    def test_totals(self, db, user):
        holdings = [
            create_holding(db, user, "RELIANCE", 10, Decimal("100"), Decimal("120"),
                           day_change=Decimal("2")),
            create_holding(db, user, "TCS", 5, Decimal("200"), Decimal("180"),
                           day_change=Decimal("-4")),
        ]

        summary = portfolio_analytics.portfolio_summary(holdings)

        assert summary.total_invested == Decimal("2000")
        assert summary.total_current_value == Decimal("2100")
        assert summary.total_pl == Decimal("100")
        assert summary.total_pl_percent == Decimal("5")
        assert summary.todays_pl == Decimal("0")
        assert summary.holdings_count == 2


class TestRankings:
    def test_top_performers_by_day_change_percent(self, db, user):
        holdings = [
            create_holding(db, user, "A", day_change_percent=Decimal("1.5")),
            create_holding(db, user, "B", day_change_percent=Decimal("-2")),
            create_holding(db, user, "C", day_change_percent=Decimal("3.1")),
            create_holding(db, user, "D", day_change_percent=Decimal("0.2")),
        ]

        top = portfolio_analytics.top_performers(holdings)

        assert [h.ticker for h in top] == ["C", "A", "D"]

    def test_top_holdings_by_value(self, db, user):
        holdings = [
            create_holding(db, user, "SMALL", 1, Decimal("10")),
            create_holding(db, user, "BIG", 100, Decimal("10")),
            create_holding(db, user, "MID", 10, Decimal("10")),
        ]

        top = portfolio_analytics.top_holdings(holdings, limit=2)

        assert [h.ticker for h in top] == ["BIG", "MID"]


class TestSectorAllocation:
    def test_groups_and_defaults_to_other(self, db, user):
        holdings = [
            create_holding(db, user, "RELIANCE", 3, Decimal("100"), sector="Energy"),
            create_holding(db, user, "ONGC", 3, Decimal("100"), sector="Energy"),
            create_holding(db, user, "MYSTERY", 4, Decimal("100"), sector=None),
        ]

        allocation = portfolio_analytics.sector_allocation(holdings)

        assert [(a.sector, a.value, a.percent) for a in allocation] == [
            ("Energy", Decimal("600"), Decimal("60")),
            ("Other", Decimal("400"), Decimal("40")),
        ]

    def test_empty_when_no_value(self):
        assert portfolio_analytics.sector_allocation([]) == []


class TestClosedPositionsSummary:
    def test_average_return_weights_by_invested(self, closed_position):
        summary = portfolio_analytics.closed_positions_summary([closed_position])

        assert summary.total_realized == Decimal("7500")
        assert summary.total_profit == Decimal("500")
        assert summary.total_positions == 1
        assert round(summary.average_return, 4) == Decimal("7.1429")

    def test_empty(self):
        summary = portfolio_analytics.closed_positions_summary([])
        assert summary.total_positions == 0
        assert summary.average_return == Decimal("0")


class TestRecentActivity:
    def test_merges_and_sorts_newest_first(self, db, user, closed_position):
        holding = create_holding(db, user, "RELIANCE", purchase_date=date(2024, 1, 1))
        entry = create_watchlist_entry(db, user, "TCS", added_date=date(2024, 1, 5))

        activities = portfolio_analytics.recent_activity([holding], [entry], [closed_position])

        assert [a.type for a in activities] == ["sell", "watchlist", "buy"]
        assert activities[0].title == "Sold INFY"
        assert activities[0].subtitle == "5 shares - +₹500.00 profit"
        assert activities[1].subtitle == "Monitoring at ₹3,500.00"
        assert activities[2].subtitle == "10 shares at ₹2,400.00"

    def test_limit(self, db, user):
        holdings = [
            create_holding(db, user, f"T{i}", purchase_date=date(2024, 1, i + 1))
            for i in range(8)
        ]

        activities = portfolio_analytics.recent_activity(holdings, [], [], limit=6)

        assert len(activities) == 6
        assert activities[0].ticker == "T7"
