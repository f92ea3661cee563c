# prioritizer/controller.py

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from prioritizer.algorithms import select_transactions
from prioritizer.config import PrioritizerConfig
from prioritizer.loaders import load_latency_catalog, read_ledger
from prioritizer.models import Transaction, TransactionPool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionReport:
    """What the operator sees for one selection."""
    transactions: list[Transaction]
    transactions_quantity: int
    total_amount: float
    total_latency: float

    @classmethod
    def from_selection(cls, transactions: list[Transaction]) -> "SelectionReport":
        total_amount = sum(t.amount for t in transactions)
        return cls(
            transactions=list(transactions),
            transactions_quantity=len(transactions),
            total_amount=round_amount(total_amount),
            total_latency=sum(t.latency for t in transactions),
        )

    def to_dict(self) -> dict:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "transactions_quantity": self.transactions_quantity,
            "total_amount": self.total_amount,
            "total_latency": self.total_latency,
        }


def round_amount(value: float) -> float:
    """Half-up rounding to cents, applied only when reporting."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# --- The "Control Tower" ---
class Prioritizer:
    """
    Loads the latency catalog and the transaction pool once, then answers
    any number of selection requests against that read-only pool.
    """

    def __init__(self, config: PrioritizerConfig | None = None):
        self.config = config or PrioritizerConfig()
        self.config.validate()

        logger.info("Initializing Prioritizer: loading latencies and ledger.")
        self.catalog = load_latency_catalog(self.config.latency_source_path)
        self.pool = TransactionPool.build(read_ledger(self.config.ledger_path), self.catalog)

    def prepare_selection(self, budget: float | None = None) -> SelectionReport:
        """
        Runs the selection engine for `budget` (the configured default when
        omitted) and aggregates the result.
        """
        if budget is None:
            budget = self.config.default_budget

        selected = select_transactions(self.pool, budget, self.config.exhaustive_search_threshold)
        report = SelectionReport.from_selection(selected)
        logger.info(
            "Selection complete: %d transactions, amount %.2f, latency %s/%s",
            report.transactions_quantity, report.total_amount, report.total_latency, budget,
        )
        return report

    def status(self) -> dict:
        return {
            "countries": len(self.catalog),
            "transactions": len(self.pool),
            "latency_classes": self.pool.latency_classes,
            "exhaustive_search_threshold": self.config.exhaustive_search_threshold,
            "default_budget": self.config.default_budget,
        }
