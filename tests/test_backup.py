"""Tests for pre-flight backups and restoration."""
import json
import os

import pytest

from scriptdoctor.errors import BackupCreationError
from scriptdoctor.reaper.backup import RESTORE_SCRIPT_NAME, BackupManager
from scriptdoctor.reaper.manifest import MANIFEST_NAME, BackupManifest


@pytest.fixture
def project(tmp_path):
    """Small project with sources, a stylesheet and ignored folders."""
    root = tmp_path / 'project'
    (root / 'src').mkdir(parents=True)
    (root / 'src' / 'main.js').write_text("function main() {}\nmain();\n", encoding='utf-8')
    (root / 'src' / 'view.tsx').write_text("export const V = () => <div/>;\n", encoding='utf-8')
    (root / 'styles').mkdir()
    (root / 'styles' / 'app.css').write_text("body { margin: 0; }\n", encoding='utf-8')
    (root / 'node_modules' / 'lib').mkdir(parents=True)
    (root / 'node_modules' / 'lib' / 'index.js').write_text("module.exports = 1;\n", encoding='utf-8')
    (root / 'README.md').write_text("# project\n", encoding='utf-8')
    return root


class TestCreateBackup:
    def test_copies_sources_and_styles(self, project):
        info = BackupManager().create_backup(project)
        assert info.file_count == 3
        assert sorted(info.files) == ['src/main.js', 'src/view.tsx', 'styles/app.css']
        assert info.location.startswith(str(project.resolve() / '.script-doctor-backups' / 'backup-'))

    def test_manifest_and_restore_script(self, project):
        info = BackupManager().create_backup(project)
        location = project / '.script-doctor-backups' / os.path.basename(info.location)
        manifest = json.loads((location / MANIFEST_NAME).read_text(encoding='utf-8'))
        assert manifest["projectRoot"] == str(project.resolve())
        assert manifest["fileCount"] == 3
        record = next(r for r in manifest["files"] if r["path"] == 'src/main.js')
        assert record["sha256"] == BackupManifest.calculate_file_hash(project / 'src' / 'main.js')

        script = location / RESTORE_SCRIPT_NAME
        assert script.exists()
        assert os.access(script, os.X_OK)

    def test_second_backup_skips_first(self, project):
        manager = BackupManager()
        manager.create_backup(project)
        info = manager.create_backup(project)
        assert info.file_count == 3

    def test_unwritable_location_raises(self, project, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text("not a directory", encoding='utf-8')
        with pytest.raises(BackupCreationError) as exc_info:
            BackupManager(backup_dir=blocker).create_backup(project)
        assert exc_info.value.error_type == "backup_error"

    def test_to_dict(self, project):
        data = BackupManager().create_backup(project).to_dict()
        assert set(data) == {"location", "fileCount", "createdAt"}


class TestRestore:
    def test_restore_overwrites_changes(self, project):
        manager = BackupManager()
        info = manager.create_backup(project)
        (project / 'src' / 'main.js').write_text("broken(\n", encoding='utf-8')

        restored = manager.restore(info.location)

        assert 'src/main.js' in restored
        assert (project / 'src' / 'main.js').read_text(encoding='utf-8') == "function main() {}\nmain();\n"

    def test_restore_into_other_root(self, project, tmp_path):
        info = BackupManager().create_backup(project)
        target = tmp_path / 'elsewhere'
        BackupManager().restore(info.location, target)
        assert (target / 'styles' / 'app.css').exists()

    def test_tampered_backup_rejected(self, project):
        manager = BackupManager()
        info = manager.create_backup(project)
        (project / '.script-doctor-backups' / os.path.basename(info.location) / 'src' / 'main.js') \
            .write_text("tampered\n", encoding='utf-8')
        with pytest.raises(IOError, match="hash mismatch"):
            manager.restore(info.location)

    def test_not_a_backup(self, tmp_path):
        with pytest.raises(ValueError, match="Not a valid backup"):
            BackupManager().restore(tmp_path)
