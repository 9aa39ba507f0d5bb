"""
Ledger - Double-Entry Transfer Engine

Moves value between balance-holding accounts as linked debit/credit
record pairs and reverses such pairs, atomically, on top of any store
that offers optimistic transactions.

DESIGN PRINCIPLES:
1. No partial pair is ever visible
2. Every balance equals the sum of the records behind it
3. Failures raise, nothing is swallowed
4. The store is injected, never global
"""

__version__ = "1.0.0"
__author__ = "Ledger Team"
