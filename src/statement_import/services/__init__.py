"""Commit and session services for the import wizard."""

from statement_import.services.commit import CommitResult, CommitStage, build_payload
from statement_import.services.session import ImportSession, ImportSummary

__all__ = ["CommitResult", "CommitStage", "build_payload", "ImportSession", "ImportSummary"]
