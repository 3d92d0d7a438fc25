"""Error taxonomy for Script Doctor.

Only BackupCreationError is fatal to a surgery run. The others are raised
inside a single file's transaction and converted into outcomes there.
"""
from pathlib import Path
from typing import Optional


class ScriptDoctorError(Exception):
    """Base class for all Script Doctor errors."""

    error_type = "internal_error"

    def __init__(self, message: str, file_path: Optional[str | Path] = None):
        super().__init__(message)
        self.message = message
        self.file_path = str(file_path) if file_path is not None else None


class ParseError(ScriptDoctorError):
    """File is unreadable or its syntax tree contains error nodes."""

    error_type = "parse_error"


class GenerationError(ScriptDoctorError):
    """Planned edits could not be turned back into source text."""

    error_type = "generation_error"


class ConservativeLimitExceeded(ScriptDoctorError):
    """Planned edits remove more of the file than the threshold allows."""

    error_type = "too_aggressive"

    def __init__(self, message: str, ratio: float, threshold: float,
                 file_path: Optional[str | Path] = None):
        super().__init__(message, file_path)
        self.ratio = ratio
        self.threshold = threshold


class ValidationError(ScriptDoctorError):
    """Regenerated text failed the independent syntax check."""

    error_type = "syntax_error"


class BackupCreationError(ScriptDoctorError):
    """Pre-flight backup could not be written. Aborts the whole run."""

    error_type = "backup_error"
