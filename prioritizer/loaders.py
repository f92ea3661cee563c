# prioritizer/loaders.py

import csv
import json
import logging
import math
import os

from prioritizer.errors import CatalogInvalid, ConfigMissing, DataEmpty, LedgerInvalid
from prioritizer.models import LatencyCatalog, LedgerRow

logger = logging.getLogger(__name__)


def load_latency_catalog(path: str) -> LatencyCatalog:
    """
    Reads the latency source: a JSON object mapping country code -> latency.
    The whole file must be valid; there is no partial catalog.
    """
    if not os.path.exists(path):
        raise ConfigMissing(f"There is not a latency source file at {path}")

    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except OSError as e:
        raise ConfigMissing(f"Cannot read latency source {path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise CatalogInvalid(f"Latency source {path} is not UTF-8 text") from e
    except json.JSONDecodeError as e:
        raise CatalogInvalid(f"Latency source {path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise CatalogInvalid(f"Latency source {path} must hold a JSON object")
    if not raw:
        raise DataEmpty(f"There are no latency entries in {path}")

    for country, latency in raw.items():
        # bool is an int subclass, but never a latency
        if isinstance(latency, bool) or not isinstance(latency, (int, float)):
            raise CatalogInvalid(f"Latency for {country} is not a number: {latency!r}")
        if not math.isfinite(latency) or latency <= 0:
            raise CatalogInvalid(f"Latency for {country} must be positive, got {latency}")

    catalog = LatencyCatalog(raw)
    logger.info("Loaded %d country latencies (%d classes) from %s",
                len(catalog), len(catalog.latency_classes()), path)
    return catalog


def read_ledger(path: str) -> list[LedgerRow]:
    """
    Reads the transaction ledger: CSV with a header row, then
    `id, amount, country, ...`. Extra columns are ignored and blank lines
    skipped. Values are returned as text; validation happens in the pool.
    """
    if not os.path.exists(path):
        raise ConfigMissing(f"There is not a transactions file at {path}")

    try:
        with open(path, newline="", encoding="utf-8") as fh:
            rows = _parse_ledger(csv.reader(fh))
    except OSError as e:
        raise ConfigMissing(f"Cannot read transactions file {path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise LedgerInvalid(f"Transactions file {path} is not UTF-8 text") from e
    except csv.Error as e:
        raise LedgerInvalid(f"Transactions file {path} is not valid CSV: {e}") from e

    logger.info("Read %d ledger rows from %s", len(rows), path)
    return rows


def _parse_ledger(reader) -> list[LedgerRow]:
    rows = []
    next(reader, None)  # header

    for record in reader:
        if not any(field.strip() for field in record):
            continue
        fields = [field.strip() for field in record] + [""] * (3 - len(record))
        rows.append(LedgerRow(
            transaction_id=fields[0],
            amount=fields[1],
            country=fields[2] or None,
        ))
    return rows
