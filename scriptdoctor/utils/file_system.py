"""File access used by the indexer and the safe mutator.

FileSystem works on disk. MockFileSystem keeps files in a dict and is
what the tests drive the pipeline with.
"""
import fnmatch
import os
import shutil
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from scriptdoctor.config import DEFAULT_BACKUP_DIR

DEFAULT_SOURCE_PATTERNS = (
    '**/*.js', '**/*.jsx', '**/*.mjs', '**/*.cjs',
    '**/*.ts', '**/*.tsx', '**/*.mts', '**/*.cts',
)

# Bare names are directories pruned anywhere in the tree; wildcard entries
# are matched against file names.
DEFAULT_IGNORE = (
    'node_modules', 'dist', 'build', '.git',
    '*.min.js', '*.bundle.js', '*.d.ts',
    DEFAULT_BACKUP_DIR,
)


def matches_pattern(relative_path: str, pattern: str) -> bool:
    """Match a root-relative posix path against a glob with `**` support."""
    if fnmatch.fnmatchcase(relative_path, pattern):
        return True
    return pattern.startswith('**/') and fnmatch.fnmatchcase(relative_path, pattern[3:])


def is_ignored(relative_path: str, ignore: Iterable[str]) -> bool:
    parts = relative_path.split('/')
    for entry in ignore:
        if any(ch in entry for ch in '*?['):
            if fnmatch.fnmatchcase(parts[-1], entry) or fnmatch.fnmatchcase(relative_path, entry):
                return True
        elif entry in parts[:-1] or entry == relative_path:
            return True
    return False


class FileSystem:
    """Disk-backed file access."""

    def read_file(self, path: str | Path) -> bytes:
        return Path(path).read_bytes()

    def exists(self, path: str | Path) -> bool:
        return Path(path).is_file()

    def find_files(self, root: str | Path, patterns: Iterable[str] = DEFAULT_SOURCE_PATTERNS,
                   ignore: Iterable[str] = DEFAULT_IGNORE) -> List[Path]:
        """List files under root matching any pattern, sorted.

        Args:
            root: Directory to search
            patterns: Globs relative to root, e.g. '**/*.js'
            ignore: Directory names to prune and file-name globs to skip

        Returns:
            Sorted list of absolute paths
        """
        root = Path(root).resolve()
        patterns = list(patterns)
        ignore = list(ignore)
        pruned = {entry for entry in ignore if not any(ch in entry for ch in '*?[')}

        found = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in pruned)
            for filename in filenames:
                file_path = Path(dirpath) / filename
                relative = file_path.relative_to(root).as_posix()
                if is_ignored(relative, ignore):
                    continue
                if any(matches_pattern(relative, pattern) for pattern in patterns):
                    found.append(file_path)
        return sorted(found)

    def write_file_atomic(self, path: str | Path, data: bytes):
        """Replace a file's content atomically.

        Writes a temp file next to the target and renames it over the
        target, so readers see either the old or the new content.

        Args:
            path: File to replace
            data: New content
        """
        path = Path(path)
        temp_path = path.with_name(f".{path.name}.script-doctor.tmp")
        try:
            with open(temp_path, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            if path.exists():
                shutil.copymode(path, temp_path)
            temp_path.replace(path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise


class MockFileSystem(FileSystem):
    """In-memory file system keyed by path."""

    def __init__(self, files: Optional[Dict[str | Path, str | bytes]] = None):
        self.files: Dict[Path, bytes] = {}
        self.writes: List[Path] = []
        for path, content in (files or {}).items():
            self.files[Path(path)] = content.encode('utf-8') if isinstance(content, str) else content

    def read_file(self, path: str | Path) -> bytes:
        path = Path(path)
        if path not in self.files:
            raise FileNotFoundError(f"File not found in mock: {path}")
        return self.files[path]

    def read_text(self, path: str | Path) -> str:
        return self.read_file(path).decode('utf-8')

    def exists(self, path: str | Path) -> bool:
        return Path(path) in self.files

    def find_files(self, root: str | Path, patterns: Iterable[str] = DEFAULT_SOURCE_PATTERNS,
                   ignore: Iterable[str] = DEFAULT_IGNORE) -> List[Path]:
        root = Path(root)
        patterns = list(patterns)
        ignore = list(ignore)
        found = []
        for path in self.files:
            try:
                relative = path.relative_to(root).as_posix()
            except ValueError:
                continue
            if is_ignored(relative, ignore):
                continue
            if any(matches_pattern(relative, pattern) for pattern in patterns):
                found.append(path)
        return sorted(found)

    def write_file_atomic(self, path: str | Path, data: bytes):
        path = Path(path)
        self.files[path] = bytes(data)
        self.writes.append(path)
