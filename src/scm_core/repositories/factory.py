import os

from scm_core.repositories.memory_repo import InMemoryLotStore
from scm_core.repositories.duckdb_repo import DuckDBLotStore


def get_lot_store():
    backend = os.getenv("SCM_LOT_BACKEND", "memory")

    if backend == "memory":
        return InMemoryLotStore()
    if backend == "duckdb":
        return DuckDBLotStore(os.getenv("SCM_LOT_DB_PATH", ":memory:"))
    raise NotImplementedError(f"Lot store backend not implemented: {backend}")
