"""Configuration management for Script Doctor.

Loads environment variables and provides centralized config access.
"""
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Tuple
from dotenv import load_dotenv

__version__ = "1.0.0"

DEFAULT_HANDLER_CALLEES = ('ipcMain.handle', 'ipcMain.handleOnce')
DEFAULT_INVOKE_CALLEES = ('ipcRenderer.invoke', 'electronAPI.invoke')

OPERATION_UNUSED_IMPORTS = 'unused-imports'
OPERATION_UNUSED_FUNCTIONS = 'unused-functions'
SUPPORTED_OPERATIONS = (OPERATION_UNUSED_IMPORTS, OPERATION_UNUSED_FUNCTIONS)

DEFAULT_BACKUP_DIR = '.script-doctor-backups'


@dataclass(frozen=True)
class AnalysisOptions:
    """Knobs for the indexing passes."""
    min_duplicate_lines: int = 3
    handler_callees: Tuple[str, ...] = DEFAULT_HANDLER_CALLEES
    invoke_callees: Tuple[str, ...] = DEFAULT_INVOKE_CALLEES
    max_complexity: int = 10

    def __post_init__(self):
        if self.min_duplicate_lines < 0:
            raise ValueError("min_duplicate_lines must be >= 0")
        if self.max_complexity < 1:
            raise ValueError("max_complexity must be at least 1")


@dataclass(frozen=True)
class SurgeryOptions:
    """Safety policy for one surgery run."""
    dry_run: bool = False
    conservative: bool = True
    conservative_threshold: float = 0.30
    validate_syntax: bool = True
    max_changes_per_file: int = 10
    backup: bool = True
    backup_dir: str = DEFAULT_BACKUP_DIR
    operations: Tuple[str, ...] = field(default=SUPPORTED_OPERATIONS)
    verbose: bool = False

    def __post_init__(self):
        if not 0.0 <= self.conservative_threshold <= 1.0:
            raise ValueError("conservative_threshold must be between 0 and 1")
        if self.max_changes_per_file < 1:
            raise ValueError("max_changes_per_file must be at least 1")

    def with_overrides(self, **changes) -> 'SurgeryOptions':
        """Copy with the given fields replaced, ignoring None values."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ('1', 'true', 'yes', 'on'):
        return True
    if value in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return tuple(item.strip() for item in raw.split(',') if item.strip())


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: str | Path | None = None):
        """Initialize config by loading .env file.

        Args:
            env_path: Explicit .env location. Defaults to the project root.
        """
        if env_path is None:
            env_path = Path(__file__).parent.parent / ".env"
        load_dotenv(env_path)

        self._validate()

    def _validate(self):
        """Parse every setting once so bad values fail early.

        Raises:
            ValueError: If a variable holds a value of the wrong type or range
        """
        self.surgery_options()
        self.analysis_options()

    @property
    def max_changes_per_file(self) -> int:
        """Per-file change budget (SCRIPT_DOCTOR_MAX_CHANGES)."""
        return _env_int("SCRIPT_DOCTOR_MAX_CHANGES", 10)

    @property
    def conservative_threshold(self) -> float:
        """Largest allowed line-reduction ratio (SCRIPT_DOCTOR_THRESHOLD)."""
        return _env_float("SCRIPT_DOCTOR_THRESHOLD", 0.30)

    @property
    def conservative(self) -> bool:
        return _env_bool("SCRIPT_DOCTOR_CONSERVATIVE", True)

    @property
    def validate_syntax(self) -> bool:
        return _env_bool("SCRIPT_DOCTOR_VALIDATE", True)

    @property
    def backup_dir(self) -> str:
        """Backup root, relative to the analyzed project.

        Returns:
            Directory name, default .script-doctor-backups
        """
        return os.getenv("SCRIPT_DOCTOR_BACKUP_DIR", DEFAULT_BACKUP_DIR)

    @property
    def min_duplicate_lines(self) -> int:
        return _env_int("SCRIPT_DOCTOR_MIN_DUPLICATE_LINES", 3)

    @property
    def max_complexity(self) -> int:
        """Cyclomatic complexity above which a function is reported (SCRIPT_DOCTOR_MAX_COMPLEXITY)."""
        return _env_int("SCRIPT_DOCTOR_MAX_COMPLEXITY", 10)

    @property
    def handler_callees(self) -> Tuple[str, ...]:
        """Callee forms that register a channel handler.

        Returns:
            Tuple of dotted names, e.g. ('ipcMain.handle',)
        """
        return _env_list("SCRIPT_DOCTOR_HANDLER_CALLEES", DEFAULT_HANDLER_CALLEES)

    @property
    def invoke_callees(self) -> Tuple[str, ...]:
        return _env_list("SCRIPT_DOCTOR_INVOKE_CALLEES", DEFAULT_INVOKE_CALLEES)

    def analysis_options(self) -> AnalysisOptions:
        return AnalysisOptions(
            min_duplicate_lines=self.min_duplicate_lines,
            handler_callees=self.handler_callees,
            invoke_callees=self.invoke_callees,
            max_complexity=self.max_complexity,
        )

    def surgery_options(self) -> SurgeryOptions:
        return SurgeryOptions(
            conservative=self.conservative,
            conservative_threshold=self.conservative_threshold,
            validate_syntax=self.validate_syntax,
            max_changes_per_file=self.max_changes_per_file,
            backup_dir=self.backup_dir,
        )


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
