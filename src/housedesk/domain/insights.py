"""Account analytics domain service."""

import math
from collections import Counter, defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from housedesk.domain.authorization import Action, require
from housedesk.domain.entities import (
    Account,
    AccountStatus,
    HouseLifetime,
    InsightsReport,
    User,
)
from housedesk.domain.errors import ValidationError
from housedesk.domain.snapshot import Snapshot

DATE_FIELDS = ("createdAt", "limitedAt")

SECONDS_PER_DAY = 24 * 60 * 60


def _lifetime_days(account: Account) -> int:
    """Whole days between registration and limiting, rounded up."""
    seconds = abs((account.limited_at - account.created_at).total_seconds())
    return math.ceil(seconds / SECONDS_PER_DAY)


def _rounded_mean(total: int, count: int) -> int:
    # Half rounds up
    return (2 * total + count) // (2 * count)


class InsightsService:
    """Service for cost and lifetime analytics over accounts."""

    def __init__(self, snapshot: Snapshot, actor: User):
        """Initialize insights service.

        Args:
            snapshot: Local projection of the store
            actor: Acting user
        """
        self.snapshot = snapshot
        self.actor = actor

    def cost_per_account(self) -> dict[str, Decimal]:
        """Map pack id to the price of one of its accounts.

        Packs with quantity 0 are left out.
        """
        return {pack.id: pack.price / pack.quantity for pack in self.snapshot.packs if pack.quantity > 0}

    def filter_accounts(
        self,
        house: Optional[str] = None,
        date_field: str = "createdAt",
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Account]:
        """Select the non-deleted accounts an analysis covers.

        Args:
            house: Only accounts of this house
            date_field: "createdAt" or "limitedAt"
            start: First day included
            end: Last day included

        Raises:
            ValidationError: If date_field is unknown
        """
        if date_field not in DATE_FIELDS:
            raise ValidationError(f"Unknown date field '{date_field}' (use {' or '.join(DATE_FIELDS)})")

        accounts = [a for a in self.snapshot.accounts if a.status != AccountStatus.DELETED]
        if house is not None:
            accounts = [a for a in accounts if a.house == house]

        def moment(account: Account) -> Optional[datetime]:
            return account.limited_at if date_field == "limitedAt" else account.created_at

        if start is not None or end is not None:
            selected = []
            for account in accounts:
                value = moment(account)
                if value is None:
                    continue
                day = value.date()
                if start is not None and day < start:
                    continue
                if end is not None and day > end:
                    continue
                selected.append(account)
            accounts = selected
        elif date_field == "limitedAt":
            accounts = [a for a in accounts if a.limited_at is not None]
        return accounts

    def report(
        self,
        house: Optional[str] = None,
        date_field: str = "createdAt",
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> InsightsReport:
        """Build the analytics report.

        Args:
            house: Only accounts of this house
            date_field: Which timestamp the date range applies to
            start: First day included
            end: Last day included

        Returns:
            InsightsReport with account count, total pack cost, status
            breakdown and average lifetime per house (longest first)

        Raises:
            AuthorizationError: If the actor may not view insights
            ValidationError: If date_field is unknown or start > end
        """
        require(Action.VIEW_INSIGHTS, self.actor)
        if start is not None and end is not None and start > end:
            raise ValidationError("Start date must not be after end date")

        accounts = self.filter_accounts(house, date_field, start, end)
        costs = self.cost_per_account()
        total_cost = sum(
            (costs[a.pack_id] for a in accounts if a.pack_id and a.pack_id in costs),
            Decimal("0"),
        )
        status_counts = Counter(a.status.value for a in accounts)

        durations: dict[str, list[int]] = defaultdict(list)
        for account in accounts:
            if account.limited_at is not None and account.created_at is not None:
                durations[account.house].append(_lifetime_days(account))
        lifetimes = sorted(
            (
                HouseLifetime(house=name, average_days=_rounded_mean(sum(days), len(days)), count=len(days))
                for name, days in durations.items()
            ),
            key=lambda item: item.average_days,
            reverse=True,
        )

        return InsightsReport(
            account_count=len(accounts),
            total_cost=total_cost,
            status_counts=dict(status_counts),
            lifetimes=tuple(lifetimes),
        )
