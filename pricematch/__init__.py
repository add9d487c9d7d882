"""Confidence-ranked linkage between weekly fuel prices and gas stations."""
from pricematch.matchers.matching_orchestrator import PriceStationConnector

__all__ = ["PriceStationConnector"]
