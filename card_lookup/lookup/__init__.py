"""Lookup pipeline and the overlay state machine that drives it."""

from card_lookup.lookup.orchestrator import LookupOrchestrator, StateChange
from card_lookup.lookup.pipeline import LookupPipeline, build_pipeline

__all__ = ["LookupOrchestrator", "LookupPipeline", "StateChange", "build_pipeline"]
