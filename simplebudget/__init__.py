"""
SimpleBudget - Source Package

A personal budget tracker that turns an annual budget into a rolling
monthly allowance, records dated income and expenses, and archives
completed months into a two-year history.

DESIGN PRINCIPLES:
1. The allowance is derived, never stored, for the live month
2. Archived goals are frozen at rollover
3. Rejected input never changes state
4. Every change is persisted and audited
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SimpleBudget Team"
