"""
Heights Ledger - position ledger and trade settlement engine.
"""
__version__ = "1.0.0"
