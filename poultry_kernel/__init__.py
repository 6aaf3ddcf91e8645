"""
Poultry Kernel - ledger store and write side of the farm finance engine.

- Period-gated expense ledger
- Two-phase chick-out revenue recording
- Asset purchase and incident repair posting
- Safety Guard over unresolved financial obligations
"""

__version__ = "0.1.0"
