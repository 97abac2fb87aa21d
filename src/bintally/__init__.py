"""bintally - detection summaries for smart recycling bins.

Aggregates per-category detection events into calendar charts, keeps the
live daily counters rolled over, and exports summaries as CSV.
"""

__version__ = "0.1.0"
