import logging
import math
from bisect import insort_right
from dataclasses import dataclass, field
from typing import NamedTuple

from prioritizer.errors import DuplicateTransaction, InvalidAmount, MissingCountry, UnknownCountry

logger = logging.getLogger(__name__)


# --- Class: LatencyCatalog ---
class LatencyCatalog:
    """
    Read-only mapping of country code -> processing latency.
    Every transaction from a country shares that country's latency class.
    """
    def __init__(self, latencies: dict[str, float]):
        self._latencies = dict(latencies)

    def latency_of(self, country: str, transaction_id: str | None = None) -> float:
        try:
            return self._latencies[country]
        except KeyError:
            raise UnknownCountry(country, transaction_id) from None

    def latency_classes(self) -> list[float]:
        """Distinct latencies, ascending."""
        return sorted(set(self._latencies.values()))

    def __contains__(self, country):
        return country in self._latencies

    def __len__(self):
        return len(self._latencies)

    def __repr__(self):
        return f"LatencyCatalog(countries={len(self._latencies)}, classes={len(self.latency_classes())})"


class LedgerRow(NamedTuple):
    """An unvalidated ledger row, fields exactly as read from the source."""
    transaction_id: str
    amount: str
    country: str | None


# --- Class: Transaction ---
@dataclass(frozen=True)
class Transaction:
    """
    A pending transfer. The rate (amount per latency unit) is derived once
    and drives every greedy decision in the selection engine.
    """
    transaction_id: str
    amount: float
    country: str
    latency: float
    rate: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "rate", self.amount / self.latency)

    def to_dict(self) -> dict:
        return {
            "id": self.transaction_id,
            "amount": self.amount,
            "country": self.country,
            "rate": self.rate,
            "latency": self.latency,
        }

    def __repr__(self):
        return f"Transaction(ID={self.transaction_id}, Amount={self.amount}, Latency={self.latency})"


# --- Class: LatencyGroup ---
class LatencyGroup:
    """
    All transactions sharing one latency, kept by descending amount so the
    best remaining candidate of the class is always at the front.
    """
    def __init__(self, latency: float):
        self.latency = latency
        self.transactions: list[Transaction] = []

    def add(self, transaction: Transaction):
        # Lands after any equal amounts, so ties keep ledger order.
        insort_right(self.transactions, transaction, key=lambda t: -t.amount)

    def candidate_at(self, cursor: int) -> Transaction | None:
        if cursor < len(self.transactions):
            return self.transactions[cursor]
        return None

    def __len__(self):
        return len(self.transactions)

    def __lt__(self, other):
        return self.latency < other.latency

    def __repr__(self):
        return f"LatencyGroup(Latency={self.latency}, Size={len(self.transactions)})"


# --- Class: TransactionPool ---
class TransactionPool:
    """
    Validated transactions grouped by latency class.
    Groups are ordered by ascending latency; the pool is never mutated after build().
    """
    def __init__(self, groups: list[LatencyGroup]):
        self.groups = sorted(groups)

    @classmethod
    def build(cls, rows, catalog: LatencyCatalog) -> "TransactionPool":
        """
        Validates every ledger row against the catalog and inserts it into its
        latency bucket. The first invalid row aborts the whole build.
        """
        groups: dict[float, LatencyGroup] = {}
        seen_ids = set()

        for row in rows:
            transaction_id = row.transaction_id or None
            if not row.country:
                raise MissingCountry(f"No country for transaction {row.transaction_id or ''}".rstrip(), transaction_id)

            amount = _parse_amount(row.amount)
            if amount is None:
                raise InvalidAmount(f"No valid amount for transaction {row.transaction_id or ''}".rstrip(), transaction_id)

            latency = catalog.latency_of(row.country, transaction_id)

            if row.transaction_id in seen_ids:
                raise DuplicateTransaction(f"Duplicate transaction {row.transaction_id}", transaction_id)
            seen_ids.add(row.transaction_id)

            transaction = Transaction(
                transaction_id=row.transaction_id,
                amount=amount,
                country=row.country,
                latency=latency,
            )
            if latency not in groups:
                groups[latency] = LatencyGroup(latency)
            groups[latency].add(transaction)

        pool = cls(list(groups.values()))
        logger.info("Built transaction pool: %d transactions in %d latency classes", len(pool), len(pool.groups))
        return pool

    @property
    def latency_classes(self) -> list[float]:
        return [g.latency for g in self.groups]

    def highest_feasible_index(self, remaining: float) -> int:
        """
        Binary search (O(log N)) for the index of the largest latency class
        that still fits in `remaining`. Returns -1 when nothing fits.
        """
        low = 0
        high = len(self.groups) - 1
        best_index = -1

        while low <= high:
            mid = (low + high) // 2
            if self.groups[mid].latency <= remaining:
                best_index = mid
                # Something larger may still fit (move right)
                low = mid + 1
            else:
                high = mid - 1

        return best_index

    def __len__(self):
        return sum(len(g) for g in self.groups)

    def __iter__(self):
        for group in self.groups:
            yield from group.transactions

    def __repr__(self):
        return f"TransactionPool(Transactions={len(self)}, Classes={self.latency_classes})"


def _parse_amount(raw) -> float | None:
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount
