"""fx-journal: MT5 trade-history import for the VIP trading journal."""

__version__ = "0.1.0"
