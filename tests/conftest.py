import json

import pytest

from prioritizer.config import PrioritizerConfig
from prioritizer.models import LatencyCatalog, LedgerRow, TransactionPool


def make_pool(latencies: dict, rows: list[tuple]) -> TransactionPool:
    """Pool from (id, amount, country) tuples, bypassing the files."""
    catalog = LatencyCatalog(latencies)
    return TransactionPool.build([LedgerRow(str(i), str(a), c) for i, a, c in rows], catalog)


def ids(transactions) -> list[str]:
    return [t.transaction_id for t in transactions]


@pytest.fixture
def scenario_pool():
    """Two countries where the greedy choice is not the optimal one."""
    return make_pool(
        {"A": 100, "B": 200},
        [("t1", 50, "A"), ("t2", 30, "A"), ("t3", 90, "B")],
    )


@pytest.fixture
def write_inputs(tmp_path):
    """
    Writes a latency source and a ledger into tmp_path and returns a config
    pointing at them. `ledger` is either a list of rows or raw CSV text.
    """
    def _write(latencies, ledger, **overrides) -> PrioritizerConfig:
        latency_path = tmp_path / "api_latencies.json"
        ledger_path = tmp_path / "transactions.csv"

        latency_path.write_text(json.dumps(latencies), encoding="utf-8")
        if isinstance(ledger, str):
            ledger_path.write_text(ledger, encoding="utf-8")
        else:
            lines = ["id,amount,bank_country_code"] + [",".join(str(f) for f in row) for row in ledger]
            ledger_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        return PrioritizerConfig(
            latency_source_path=str(latency_path),
            ledger_path=str(ledger_path),
            **overrides,
        )
    return _write
