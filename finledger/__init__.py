"""
finledger - Source Package

Ledger-accounting and forecasting engine for a personal-finance app.
Turns investment transactions into holdings, rolls recurring obligations
forward, evaluates price alerts and projects savings goals.

DESIGN PRINCIPLES:
1. Derived state is recomputed, never patched
2. Missing external data degrades, store outages propagate
3. Every state change is auditable
4. Storage, quotes and notifications are swappable collaborators
"""

__version__ = "1.0.0"
__author__ = "finledger Team"
