"""ICP Supply Breakdown.

Fetches Internet Computer supply and governance staking metrics, builds a
hierarchical supply tree (liquid, staked, rewards, burned) and renders it
as an expandable table with percentage-of-total columns.
"""

__version__ = "0.1.0"
