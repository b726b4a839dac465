"""
Budgeter - Source Package

Budget and tax estimation engine for a personal finance tracker.

DESIGN PRINCIPLES:
1. Computation is pure; only the storage layer holds state
2. Fail early, fail visibly
3. No silent corrections
4. Every mutation is auditable
5. Storage and bank providers are injected, never global
"""

__version__ = "1.0.0"
__author__ = "Budgeter Team"
