"""Persisted state layout."""

from amm_engine.state.snapshot import SNAPSHOT_VERSION, EngineSnapshot

__all__ = ["SNAPSHOT_VERSION", "EngineSnapshot"]
