"""LifeSync - local-first tasks, finance ledger and notes."""

__version__ = "0.1.0"
