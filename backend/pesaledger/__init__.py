"""
PesaLedger: SMS-driven mobile-money ledger with cloud sync.
"""

__version__ = "1.0.0"
