# prioritizer/algorithms.py

import logging
from typing import Callable

from prioritizer.models import Transaction, TransactionPool

logger = logging.getLogger(__name__)

DEFAULT_BUDGET = 1000
# Budgets at or below this run the exhaustive backtracking search.
EXHAUSTIVE_LIMIT = 500


def select_transactions(pool: TransactionPool, budget: float = DEFAULT_BUDGET,
                        exhaustive_limit: float = EXHAUSTIVE_LIMIT) -> list[Transaction]:
    """
    Picks the subset of the pool that maximizes the total amount while the
    summed latency stays within `budget`.

    Budgets up to `exhaustive_limit` get the exhaustive search (optimal);
    anything larger gets a single greedy pass (fast, no guarantee).
    The pool is only read, so repeated calls return identical selections.
    """
    if budget <= exhaustive_limit:
        logger.info("Budget %s <= %s: running exhaustive search", budget, exhaustive_limit)
        selected = _select_exhaustive(pool, budget)
    else:
        logger.info("Budget %s > %s: running greedy selection", budget, exhaustive_limit)
        selected = _select_greedy(pool, budget)

    logger.info("Selected %d of %d transactions", len(selected), len(pool))
    return selected


def _best_candidate(pool: TransactionPool, cursors: list[int], remaining: float,
                    allowed: Callable[[int], bool] | None = None) -> tuple[int, Transaction | None]:
    """
    Scans feasible classes from the highest latency down and returns
    (group index, transaction) for the front candidate with the highest rate.
    Only a strictly better rate displaces an earlier find, so ties go to the
    higher latency class.
    """
    best_index = -1
    best = None
    for i in range(pool.highest_feasible_index(remaining), -1, -1):
        candidate = pool.groups[i].candidate_at(cursors[i])
        if candidate is None:
            continue
        if allowed is not None and not allowed(i):
            continue
        if best is None or candidate.rate > best.rate:
            best_index = i
            best = candidate
    return best_index, best


# ====================================================================
# HEURISTIC REGIME: single greedy pass, no backtracking
# ====================================================================

def _select_greedy(pool: TransactionPool, budget: float) -> list[Transaction]:
    cursors = [0] * len(pool.groups)
    remaining = budget
    selected = []

    while True:
        index, transaction = _best_candidate(pool, cursors, remaining)
        if transaction is None:
            break
        selected.append(transaction)
        cursors[index] += 1
        remaining -= transaction.latency

    return selected


# ====================================================================
# EXHAUSTIVE REGIME: depth-first backtracking with exclusion rules
# ====================================================================

class SearchState:
    """
    Everything the backtracking loop mutates, scoped to one search.

    cursors[i] counts how many transactions of group i sit in the branch;
    since a class is always consumed from its front, the cursor vector
    identifies the branch contents regardless of order.
    """
    def __init__(self, pool: TransactionPool, budget: float, remember_explored: bool = True):
        self.pool = pool
        self.budget = budget
        self.branch: list[Transaction] = []
        self.branch_groups: list[int] = []
        self.cursors = [0] * len(pool.groups)
        self.remaining = budget
        # depth -> latency classes already tried (and abandoned) at that depth
        self.exclusions: dict[int, set[float]] = {}
        # cursor vectors already entered; their sub-trees need no second visit
        self.remember_explored = remember_explored
        self.explored = {tuple(self.cursors)}
        self.best_branch: list[Transaction] = []
        self.best_amount = 0.0
        self.completed = 0

    @property
    def depth(self) -> int:
        return len(self.branch)

    def branch_amount(self) -> float:
        return sum(t.amount for t in self.branch)

    def _cursors_with(self, index: int) -> tuple:
        cursors = list(self.cursors)
        cursors[index] += 1
        return tuple(cursors)

    def is_open(self, index: int) -> bool:
        """Group `index` may extend the branch at the current depth."""
        excluded = self.exclusions.get(self.depth)
        if excluded and self.pool.groups[index].latency in excluded:
            return False
        if not self.remember_explored:
            return True
        return self._cursors_with(index) not in self.explored

    def push(self, index: int, transaction: Transaction):
        self.branch.append(transaction)
        self.branch_groups.append(index)
        self.cursors[index] += 1
        self.explored.add(tuple(self.cursors))
        self._refresh_remaining()

    def pop(self) -> Transaction:
        transaction = self.branch.pop()
        index = self.branch_groups.pop()
        self.cursors[index] -= 1
        self._refresh_remaining()
        return transaction

    def _refresh_remaining(self):
        # Recomputed from the branch so float latencies never drift.
        self.remaining = self.budget - sum(t.latency for t in self.branch)

    def record_completed_branch(self):
        self.completed += 1
        amount = self.branch_amount()
        if amount > self.best_amount:
            self.best_branch = list(self.branch)
            self.best_amount = amount

    def exclude(self, depth: int, latency: float):
        self.exclusions.setdefault(depth, set()).add(latency)
        for deeper in [d for d in self.exclusions if d > depth]:
            del self.exclusions[deeper]


def _select_exhaustive(pool: TransactionPool, budget: float,
                       remember_explored: bool = True) -> list[Transaction]:
    state = SearchState(pool, budget, remember_explored)

    while True:
        index, transaction = _best_candidate(pool, state.cursors, state.remaining, state.is_open)

        # 1. Extend the branch with the best open candidate
        if transaction is not None:
            state.push(index, transaction)
            continue

        # 2. Nothing fits at this depth: the branch is complete
        state.record_completed_branch()

        # 3. The whole tree has been explored
        if not state.branch:
            break

        # 4. Backtrack and forbid the abandoned class at this depth
        removed = state.pop()
        state.exclude(state.depth, removed.latency)

    logger.debug(
        "Exhaustive search evaluated %d branches over %d states, best amount %s",
        state.completed, len(state.explored), state.best_amount,
    )
    return state.best_branch
