from __future__ import annotations

from dca_alert_engine.models import TokenBalanceEntry


def group_by_owner(entries: list[TokenBalanceEntry]) -> dict[str, list[TokenBalanceEntry]]:
    groups: dict[str, list[TokenBalanceEntry]] = {}
    for e in entries:
        groups.setdefault(e.owner, []).append(e)
    return groups


def first_owner_pair(
    entries: list[TokenBalanceEntry],
) -> tuple[TokenBalanceEntry, TokenBalanceEntry] | None:
    """Pick the acting user's two token accounts from post-transaction balances.

    The first owner (in balance-list order) holding at least two entries wins and
    its first two entries are returned. The mints are not checked against the
    decoded instruction, so an owner with extra token accounts (fees, referral)
    may yield the wrong pair.
    """
    if len(entries) < 2:
        return None
    for group in group_by_owner(entries).values():
        if len(group) >= 2:
            return group[0], group[1]
    return None
