"""
Statement import wizard.

Provides:
- WizardController: gated step sequencing
- ImportContext: explicit state shared by the steps
- The five import steps (account, extractor, upload, conflicts, review)
"""

from .context import ImportContext
from .controller import StepStatus, WizardController, WizardStep
from .steps import (
    AccountSelectionStep,
    ConflictCheckStep,
    ExtractorSelectionStep,
    FileUploadStep,
    ImportStep,
    ReviewStep,
)

__all__ = [
    "WizardController",
    "WizardStep",
    "StepStatus",
    "ImportContext",
    "ImportStep",
    "AccountSelectionStep",
    "ExtractorSelectionStep",
    "FileUploadStep",
    "ConflictCheckStep",
    "ReviewStep",
]
