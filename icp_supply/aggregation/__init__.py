"""Aggregation module - bucket sums and supply tree construction."""

from .buckets import BucketAggregator
from .tree_builder import SupplyTreeBuilder

__all__ = ["BucketAggregator", "SupplyTreeBuilder"]
