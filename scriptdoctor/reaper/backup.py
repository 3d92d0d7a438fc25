"""Pre-flight project backup with a manifest and a restore script."""
import secrets
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from scriptdoctor.config import DEFAULT_BACKUP_DIR
from scriptdoctor.errors import BackupCreationError
from scriptdoctor.utils.file_system import DEFAULT_IGNORE, FileSystem
from .manifest import MANIFEST_NAME, BackupManifest

BACKUP_PATTERNS = (
    '**/*.js', '**/*.jsx', '**/*.mjs', '**/*.cjs',
    '**/*.ts', '**/*.tsx', '**/*.css', '**/*.scss',
)

RESTORE_SCRIPT_NAME = "RESTORE.sh"


@dataclass(frozen=True)
class BackupInfo:
    """Where a backup was written and what it holds."""
    location: str
    file_count: int
    created_at: str
    files: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "location": self.location,
            "fileCount": self.file_count,
            "createdAt": self.created_at,
        }


def restore_script(backup_path: Path, project_root: Path) -> str:
    return (
        "#!/bin/sh\n"
        "# Restores the files saved in this backup over the project.\n"
        "set -e\n"
        f'BACKUP_DIR="{backup_path.resolve()}"\n'
        f'PROJECT_ROOT="{project_root.resolve()}"\n'
        'cd "$BACKUP_DIR"\n'
        f"find . -type f ! -name '{MANIFEST_NAME}' ! -name '{RESTORE_SCRIPT_NAME}' | while read -r f; do\n"
        '  mkdir -p "$PROJECT_ROOT/$(dirname "$f")"\n'
        '  cp "$f" "$PROJECT_ROOT/$f"\n'
        "done\n"
        'echo "Restored backup from $BACKUP_DIR"\n'
    )


class BackupManager:
    """Copy project sources into a timestamped directory before surgery."""

    def __init__(self, backup_dir: str | Path = DEFAULT_BACKUP_DIR,
                 file_system: Optional[FileSystem] = None):
        """Initialize backup manager.

        Args:
            backup_dir: Backup root; relative paths are resolved against
                the project root passed to create_backup
            file_system: Used for file discovery only; copies always go
                through the real disk
        """
        self.backup_dir = Path(backup_dir)
        self.file_system = file_system or FileSystem()

    def _backup_root(self, project_root: Path) -> Path:
        if self.backup_dir.is_absolute():
            return self.backup_dir
        return project_root / self.backup_dir

    def create_backup(self, project_root: str | Path) -> BackupInfo:
        """Copy every source and stylesheet under project_root.

        Args:
            project_root: Project to back up

        Returns:
            BackupInfo with the backup location

        Raises:
            BackupCreationError: If anything fails; the partial backup
                directory is left for inspection
        """
        project_root = Path(project_root).resolve()
        backup_path = self._backup_root(project_root) / f"backup-{self._generate_backup_id()}"
        ignore = DEFAULT_IGNORE + (self.backup_dir.name,)

        try:
            sources = self.file_system.find_files(project_root, BACKUP_PATTERNS, ignore)
            backup_path.mkdir(parents=True, exist_ok=False)

            records = []
            for source in sources:
                relative = Path(source).relative_to(project_root)
                destination = backup_path / relative
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination)
                records.append({
                    "path": relative.as_posix(),
                    "sha256": BackupManifest.calculate_file_hash(destination),
                })

            BackupManifest(backup_path).write(project_root, records)
            script_path = backup_path / RESTORE_SCRIPT_NAME
            script_path.write_text(restore_script(backup_path, project_root), encoding='utf-8')
            script_path.chmod(0o755)
        except (OSError, ValueError) as e:
            raise BackupCreationError(f"Failed to create backup at {backup_path}: {e}",
                                      backup_path) from e

        return BackupInfo(
            location=str(backup_path),
            file_count=len(records),
            created_at=datetime.now().isoformat(),
            files=[record["path"] for record in records],
        )

    def restore(self, backup_path: str | Path, project_root: Optional[str | Path] = None) -> List[str]:
        """Copy a backup's files back over the project.

        Args:
            backup_path: A backup-<timestamp> directory
            project_root: Destination; defaults to the root recorded in
                the manifest

        Returns:
            Root-relative paths that were restored

        Raises:
            ValueError: If the backup has no readable manifest
            IOError: If a backed-up file is missing or fails its hash check
        """
        backup_path = Path(backup_path)
        manifest = BackupManifest(backup_path)
        try:
            data = manifest.read()
        except (OSError, ValueError) as e:
            raise ValueError(f"Not a valid backup: {backup_path} ({e})") from e

        destination_root = Path(project_root) if project_root else Path(data["projectRoot"])
        restored = []
        errors = []
        for record in data.get("files", []):
            saved = backup_path / record["path"]
            if not saved.exists():
                errors.append(f"{record['path']}: missing from backup")
                continue
            if BackupManifest.calculate_file_hash(saved) != record["sha256"]:
                errors.append(f"{record['path']}: hash mismatch")
                continue
            target = destination_root / record["path"]
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(saved, target)
            restored.append(record["path"])

        if errors:
            raise IOError("Failed to restore some files:\n" + "\n".join(errors))
        return restored

    def _generate_backup_id(self) -> str:
        """Generate unique backup ID with timestamp.

        Returns:
            Backup ID in format: YYYYMMDD_HHMMSS_randomhex
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = secrets.token_hex(3)
        return f"{timestamp}_{random_suffix}"
