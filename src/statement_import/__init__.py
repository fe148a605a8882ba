"""
Bank statement → Draft transactions → Duplicate check → Review → Batch commit

The import wizard behind a personal-finance ledger: a statement parsed by the
server-side extractor becomes a list of draft transactions that are checked
against the account's existing transactions, resolved, reviewed and submitted
as one batch.
"""

__version__ = "0.1.0"
