"""
Statement file handling and local upload validation.

Every check here runs before any network call. A rejected file raises a
field-level ValidationError and never reaches the extractor.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import ValidationError

if TYPE_CHECKING:
    from ..config import ImportConfig

# First bytes of every PDF document
PDF_MAGIC = b"%PDF"


@dataclass(frozen=True)
class StatementFile:
    """An in-memory statement file selected for upload."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @classmethod
    def from_path(cls, path: Path) -> StatementFile:
        """Read a file from disk, guessing its content type from the name."""
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )


def validate_statement_files(
    files: Sequence[StatementFile],
    config: ImportConfig,
) -> StatementFile:
    """
    Validate the user's file selection and return the single accepted file.

    Rules:
    - Exactly one file
    - Extension and content type must both indicate the accepted document type
    - Size must not exceed ``config.max_upload_mb``
    - Content must start with ``%PDF`` when ``check_magic_bytes`` is on

    Raises:
        ValidationError: With ``field="file"`` on the first violated rule.
    """
    if not files:
        raise ValidationError("file", "Please select a file to upload")
    if len(files) > 1:
        raise ValidationError("file", "Only one file can be imported at a time")

    statement = files[0]

    # Browsers report variants like "application/x-pdf"; match on the subtype
    content_type = statement.content_type.lower()
    type_ok = any(
        accepted.lower().split("/")[-1] in content_type
        for accepted in config.accepted_content_types
    )
    if statement.extension not in config.accepted_extensions or not type_ok:
        raise ValidationError("file", "Only PDF files are allowed")

    if statement.size > config.max_upload_bytes:
        raise ValidationError(
            "file",
            f"File is too large. Maximum size is {config.max_upload_mb}MB",
        )

    if statement.size == 0:
        raise ValidationError("file", "File is empty")

    if config.check_magic_bytes and not statement.content.startswith(PDF_MAGIC):
        raise ValidationError("file", "Invalid PDF file")

    return statement
