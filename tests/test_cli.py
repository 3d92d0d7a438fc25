"""CLI tests driven through typer's CliRunner."""
import json

import pytest
from typer.testing import CliRunner

from scriptdoctor.main import app
from scriptdoctor.reaper.backup import BackupManager

runner = CliRunner()

MAIN_JS = """import fs from 'fs';
function used() {
  return 1;
}
function unused() {
  return 2;
}
used();
used();
"""


@pytest.fixture
def project(tmp_path):
    root = tmp_path / 'app'
    root.mkdir()
    (root / 'main.js').write_text(MAIN_JS, encoding='utf-8')
    (root / 'preload.js').write_text("ipcMain.handle('orphan', async () => 1);\n", encoding='utf-8')
    return root


class TestAudit:
    def test_json_output(self, project):
        result = runner.invoke(app, ["audit", str(project), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["summary"]["unusedFunctions"] == 1
        assert data["summary"]["unusedImports"] == 1
        assert data["summary"]["unusedIpcHandlers"] == 1
        assert data["details"]["UnusedFunction"][0]["name"] == "unused"

    def test_table_output(self, project):
        result = runner.invoke(app, ["audit", str(project)])
        assert result.exit_code == 0, result.output
        assert "Unused Symbols" in result.stdout
        assert "unused" in result.stdout
        assert "orphan" in result.stdout

    def test_unreachable_code_table(self, tmp_path):
        (tmp_path / 'flow.js').write_text(
            "function stop() {\n  return 1;\n  cleanup();\n}\nstop();\n", encoding='utf-8')
        result = runner.invoke(app, ["audit", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "Unreachable Code" in result.stdout
        assert "after-return" in result.stdout

    def test_missing_path(self, tmp_path):
        result = runner.invoke(app, ["audit", str(tmp_path / 'nope')])
        assert result.exit_code == 1
        assert "does not exist" in result.stdout


class TestSurgery:
    def test_dry_run_leaves_files(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--dry-run", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["mode"] == "DRY_RUN"
        assert data["backup"] is None
        assert (project / 'main.js').read_text(encoding='utf-8') == MAIN_JS

    def test_live_run_removes_dead_code(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--yes", "--no-backup",
                                     "--threshold", "0.5", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["summary"]["successfullyModified"] == 1
        text = (project / 'main.js').read_text(encoding='utf-8')
        assert "function unused" not in text
        assert "import fs" not in text
        assert "function used" in text

    def test_operation_filter(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--yes", "--no-backup",
                                     "--operation", "unused-imports", "--json"])
        assert result.exit_code == 0, result.output
        text = (project / 'main.js').read_text(encoding='utf-8')
        assert "import fs" not in text
        assert "function unused" in text

    def test_conservative_rejection_is_not_failure(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--yes", "--no-backup", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["statistics"]["rejectedTooAggressive"] == 1
        assert (project / 'main.js').read_text(encoding='utf-8') == MAIN_JS

    def test_live_run_creates_backup(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--yes", "--no-conservative"])
        assert result.exit_code == 0, result.output
        assert (project / '.script-doctor-backups').is_dir()

    def test_operation_names_print_literally(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--dry-run", "--operation", "[/red]"])
        assert result.exit_code == 0, result.output
        assert "'[/red]' not supported" in result.stdout

    def test_json_live_run_requires_yes(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--json"])
        assert result.exit_code == 1
        assert (project / 'main.js').read_text(encoding='utf-8') == MAIN_JS

    def test_declined_confirmation(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--no-backup"], input="n\n")
        assert result.exit_code == 1
        assert (project / 'main.js').read_text(encoding='utf-8') == MAIN_JS

    def test_invalid_threshold(self, project):
        result = runner.invoke(app, ["surgery", str(project), "--dry-run", "--threshold", "2"])
        assert result.exit_code == 1
        assert "conservative_threshold" in result.stdout


class TestRestore:
    def test_restore_backup(self, project):
        info = BackupManager().create_backup(project)
        (project / 'main.js').write_text("oops\n", encoding='utf-8')
        result = runner.invoke(app, ["restore", info.location, "--yes"])
        assert result.exit_code == 0, result.output
        assert (project / 'main.js').read_text(encoding='utf-8') == MAIN_JS

    def test_restore_invalid(self, tmp_path):
        result = runner.invoke(app, ["restore", str(tmp_path), "--yes"])
        assert result.exit_code == 1
        assert "Restore failed" in result.stdout


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "1.0.0"
