from __future__ import annotations

from calendar import monthrange
from typing import Dict

from models.catalog import EntryKind
from repositories.base import OwnedRepository


async def monthly_summary(repo: OwnedRepository, owner_id: str, year: int, month: int) -> Dict[str, int]:
    """Revenue, expenses and net profit (minor units) for entries dated in the month."""
    last_day = monthrange(year, month)[1]
    first = f"{year:04d}-{month:02d}-01"
    last = f"{year:04d}-{month:02d}-{last_day:02d}"
    # entry_date is stored as YYYY-MM-DD text, so the range compares lexically
    entries = await repo.list(owner_id, {"entry_date": {"$gte": first, "$lte": last}})

    revenue = sum(int(e.get("amount", 0)) for e in entries if e.get("type") == EntryKind.income.value)
    expenses = sum(int(e.get("amount", 0)) for e in entries if e.get("type") == EntryKind.expense.value)
    return {
        "year": year,
        "month": month,
        "revenue": revenue,
        "expenses": expenses,
        "net_profit": revenue - expenses,
    }
