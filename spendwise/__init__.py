"""
SpendWise - Budget Allocation & Loan Accounting Engine

Works out how much can safely be spent per remaining day of the month,
and keeps money lent to friends consistent with the income and spending
ledgers it touches.

DESIGN PRINCIPLES:
1. Calculations are pure functions of the ledger and the clock
2. Fail early, fail visibly: bad input is rejected, never coerced to 0
3. No silent corrections
4. Every transition, applied or refused, is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SpendWise Team"
