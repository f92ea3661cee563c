"""
Configuration for the transaction prioritizer.
Values come from explicit arguments or from the environment (a `.env` file in
the working directory fills in variables the process environment lacks);
nothing reads the environment after a config has been built.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from prioritizer.algorithms import DEFAULT_BUDGET, EXHAUSTIVE_LIMIT
from prioritizer.errors import ConfigInvalid

logger = logging.getLogger(__name__)

DEFAULT_LATENCY_SOURCE = os.path.join("data", "api_latencies.json")
DEFAULT_LEDGER = os.path.join("data", "transactions.csv")

# Environment variable names, shared with earlier deployments of the tool
ENV_LATENCY_SOURCE = "API_LATENCIES"
ENV_LEDGER = "TRANSACTIONS"
ENV_EXHAUSTIVE_LIMIT = "LIMIT_TIME_EXHAUSTIVE_SEARCH"
ENV_DEFAULT_BUDGET = "DEFAULT_TOTAL_TIME"


@dataclass
class PrioritizerConfig:
    """Where the inputs live and how the selection engine is tuned."""

    latency_source_path: str = DEFAULT_LATENCY_SOURCE
    ledger_path: str = DEFAULT_LEDGER
    exhaustive_search_threshold: int = EXHAUSTIVE_LIMIT  # budgets <= this get the exhaustive search
    default_budget: int = DEFAULT_BUDGET  # used when the caller gives no budget

    def validate(self) -> None:
        if not self.latency_source_path:
            raise ConfigInvalid("latency_source_path must not be empty")
        if not self.ledger_path:
            raise ConfigInvalid("ledger_path must not be empty")
        if self.exhaustive_search_threshold < 0:
            raise ConfigInvalid(f"exhaustive_search_threshold must be >= 0, got {self.exhaustive_search_threshold}")
        if self.default_budget < 0:
            raise ConfigInvalid(f"default_budget must be >= 0, got {self.default_budget}")

    @classmethod
    def from_env(cls, environ=None) -> "PrioritizerConfig":
        """
        Builds a config from environment variables, falling back to defaults.
        Without an explicit `environ`, a `.env` file found from the working
        directory is loaded first; variables already set in the process win.
        """
        if environ is None:
            load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        config = cls(
            latency_source_path=environ.get(ENV_LATENCY_SOURCE, DEFAULT_LATENCY_SOURCE),
            ledger_path=environ.get(ENV_LEDGER, DEFAULT_LEDGER),
            exhaustive_search_threshold=_int_from_env(environ, ENV_EXHAUSTIVE_LIMIT, EXHAUSTIVE_LIMIT),
            default_budget=_int_from_env(environ, ENV_DEFAULT_BUDGET, DEFAULT_BUDGET),
        )
        config.validate()
        logger.debug("Loaded configuration: %s", config)
        return config


def _int_from_env(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigInvalid(f"{name} must be an integer, got {raw!r}") from None
