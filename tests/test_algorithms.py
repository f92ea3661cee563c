import random
from itertools import combinations

import pytest

from conftest import ids, make_pool
from prioritizer.algorithms import EXHAUSTIVE_LIMIT, _select_exhaustive, select_transactions

GREEDY = 0  # exhaustive_limit that forces the greedy regime for any positive budget


def total_amount(transactions):
    return sum(t.amount for t in transactions)


def total_latency(transactions):
    return sum(t.latency for t in transactions)


def brute_force_best(pool, budget):
    transactions = list(pool)
    best = 0.0
    for size in range(1, len(transactions) + 1):
        for subset in combinations(transactions, size):
            if total_latency(subset) <= budget:
                best = max(best, total_amount(subset))
    return best


def random_pool(seed):
    rng = random.Random(seed)
    latencies = rng.sample([10, 20, 30, 50, 70], rng.randint(1, 3))
    countries = {f"c{i}": latency for i, latency in enumerate(latencies)}
    rows = [
        (f"t{n}", rng.randint(1, 100), rng.choice(list(countries)))
        for n in range(rng.randint(1, 8))
    ]
    return make_pool(countries, rows)


# --- Concrete scenario ---

def test_exhaustive_finds_optimum_over_greedy_choice(scenario_pool):
    selected = select_transactions(scenario_pool, 200)

    assert ids(selected) == ["t3"]
    assert total_amount(selected) == 90
    assert total_latency(selected) == 200


def test_greedy_regime_takes_best_rate_first(scenario_pool):
    selected = select_transactions(scenario_pool, 200, exhaustive_limit=GREEDY)

    assert ids(selected) == ["t1", "t2"]
    assert total_amount(selected) == 80


def test_default_budget_uses_greedy(scenario_pool):
    # 1000 is above the default limit, and everything fits anyway
    selected = select_transactions(scenario_pool)

    assert 1000 > EXHAUSTIVE_LIMIT
    assert ids(selected) == ["t1", "t3", "t2"]


def test_regime_switch_is_inclusive(scenario_pool):
    assert ids(select_transactions(scenario_pool, 200, exhaustive_limit=200)) == ["t3"]
    assert ids(select_transactions(scenario_pool, 200, exhaustive_limit=199)) == ["t1", "t2"]


# --- Edge cases ---

@pytest.mark.parametrize("limit", [EXHAUSTIVE_LIMIT, GREEDY])
@pytest.mark.parametrize("budget", [0, 50, 99])
def test_budget_below_every_class_selects_nothing(scenario_pool, budget, limit):
    assert select_transactions(scenario_pool, budget, exhaustive_limit=limit) == []


def test_empty_pool_selects_nothing():
    pool = make_pool({"A": 10}, [])

    assert select_transactions(pool, 100) == []
    assert select_transactions(pool, 100, exhaustive_limit=GREEDY) == []


def test_equal_rates_prefer_higher_latency_class():
    pool = make_pool({"A": 10, "B": 20}, [("a", 10, "A"), ("b", 20, "B")])

    assert ids(select_transactions(pool, 30)) == ["b", "a"]
    assert ids(select_transactions(pool, 30, exhaustive_limit=GREEDY)) == ["b", "a"]


def test_within_class_highest_amount_first():
    pool = make_pool({"A": 10}, [("small", 1, "A"), ("big", 9, "A"), ("mid", 5, "A")])

    assert ids(select_transactions(pool, 20)) == ["big", "mid"]
    assert ids(select_transactions(pool, 20, exhaustive_limit=GREEDY)) == ["big", "mid"]


def test_greedy_skips_classes_that_no_longer_fit():
    pool = make_pool(
        {"A": 10, "B": 60},
        [("a1", 8, "A"), ("a2", 7, "A"), ("b1", 100, "B")],
    )

    # b1 (rate 1.67) goes first, leaving 10 for a1 only
    assert ids(select_transactions(pool, 70, exhaustive_limit=GREEDY)) == ["b1", "a1"]


def test_exhaustive_combines_classes():
    pool = make_pool(
        {"A": 30, "B": 50},
        [("a1", 40, "A"), ("a2", 35, "A"), ("a3", 30, "A"), ("b1", 60, "B"), ("b2", 55, "B")],
    )

    # a1+a2+a3 = 105 (latency 90) loses to b1+b2 = 115 (latency 100)
    selected = select_transactions(pool, 100)

    assert total_amount(selected) == 115
    assert sorted(ids(selected)) == ["b1", "b2"]


# --- Properties ---

@pytest.mark.parametrize("seed", range(40))
def test_exhaustive_matches_brute_force(seed):
    pool = random_pool(seed)

    for budget in range(0, 160, 10):
        selected = select_transactions(pool, budget)
        assert total_amount(selected) == pytest.approx(brute_force_best(pool, budget))


@pytest.mark.parametrize("seed", range(20))
@pytest.mark.parametrize("limit", [EXHAUSTIVE_LIMIT, GREEDY])
def test_selection_is_feasible_and_unique(seed, limit):
    pool = random_pool(seed)

    for budget in range(0, 200, 15):
        selected = select_transactions(pool, budget, exhaustive_limit=limit)
        assert total_latency(selected) <= budget
        assert len(set(ids(selected))) == len(selected)


@pytest.mark.parametrize("seed", range(20))
def test_exhaustive_budget_monotonicity(seed):
    pool = random_pool(seed)
    previous = 0.0

    for budget in range(0, 200, 5):
        amount = total_amount(select_transactions(pool, budget))
        assert amount >= previous
        previous = amount


@pytest.mark.parametrize("limit", [EXHAUSTIVE_LIMIT, GREEDY])
def test_selection_is_idempotent_and_leaves_pool_untouched(limit):
    pool = random_pool(7)
    before = [list(g.transactions) for g in pool.groups]

    first = select_transactions(pool, 120, exhaustive_limit=limit)
    second = select_transactions(pool, 120, exhaustive_limit=limit)

    assert ids(first) == ids(second)
    assert [list(g.transactions) for g in pool.groups] == before


def test_exhaustive_never_worse_than_greedy():
    for seed in range(30):
        pool = random_pool(seed)
        for budget in (40, 80, 120):
            exhaustive = total_amount(select_transactions(pool, budget))
            greedy = total_amount(select_transactions(pool, budget, exhaustive_limit=GREEDY))
            assert exhaustive >= greedy


def test_exhaustive_handles_many_small_transactions():
    rows = [(f"t{n}", 1 + (n * 7) % 13, "ABC"[n % 3]) for n in range(30)]
    pool = make_pool({"A": 10, "B": 15, "C": 25}, rows)

    selected = select_transactions(pool, 150)

    assert total_latency(selected) <= 150
    assert total_amount(selected) >= total_amount(select_transactions(pool, 150, exhaustive_limit=GREEDY))


@pytest.mark.parametrize("seed", range(25))
def test_explored_memory_does_not_change_the_result(seed):
    pool = random_pool(seed)

    for budget in (30, 60, 90, 120):
        remembered = _select_exhaustive(pool, budget)
        plain = _select_exhaustive(pool, budget, remember_explored=False)
        assert ids(remembered) == ids(plain)


def test_explored_memory_keeps_order_on_ties():
    # Two equally good answers; both searches must settle on the same one
    pool = make_pool(
        {"A": 10, "B": 20},
        [("a1", 10, "A"), ("a2", 10, "A"), ("b1", 20, "B"), ("b2", 20, "B")],
    )

    remembered = _select_exhaustive(pool, 40)
    plain = _select_exhaustive(pool, 40, remember_explored=False)

    assert ids(remembered) == ids(plain) == ["b1", "b2"]
