"""Backup manifest (BACKUP_INFO.json) for verified restoration."""
import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List

MANIFEST_NAME = "BACKUP_INFO.json"
MANIFEST_VERSION = "1.0"


class BackupManifest:
    """Read and write the JSON manifest stored inside one backup directory."""

    def __init__(self, backup_dir: str | Path):
        """Initialize manifest.

        Args:
            backup_dir: Directory of a single backup (backup-<timestamp>)
        """
        self.backup_dir = Path(backup_dir)
        self.manifest_path = self.backup_dir / MANIFEST_NAME

    def write(self, project_root: str | Path, files: List[Dict]):
        """Write the manifest atomically.

        Args:
            project_root: Directory the files were copied from
            files: Records with 'path' (root-relative) and 'sha256'
        """
        data = {
            "version": MANIFEST_VERSION,
            "timestamp": datetime.now().isoformat(),
            "projectRoot": str(Path(project_root).resolve()),
            "fileCount": len(files),
            "files": files,
        }
        # Write to temp file first for atomic operation
        temp_path = self.manifest_path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_path.replace(self.manifest_path)

    def read(self) -> Dict:
        """Read manifest from disk.

        Raises:
            FileNotFoundError: If the backup has no manifest
            json.JSONDecodeError: If the manifest is corrupt
        """
        with open(self.manifest_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    @staticmethod
    def calculate_file_hash(file_path: str | Path) -> str:
        """Calculate SHA256 hash of file.

        Args:
            file_path: Path to file

        Returns:
            SHA256 hash as hex string
        """
        sha256_hash = hashlib.sha256()

        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(4096), b""):
                sha256_hash.update(byte_block)

        return sha256_hash.hexdigest()
