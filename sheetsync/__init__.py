"""sheetsync: spreadsheet import normalization and record reconciliation."""

__version__ = "0.1.0"
