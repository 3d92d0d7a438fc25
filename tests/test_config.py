"""Tests for environment-backed configuration."""
import pytest

from scriptdoctor.config import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_INVOKE_CALLEES,
    AnalysisOptions,
    Config,
    SurgeryOptions,
    get_config,
    reset_config,
)


class TestConfigDefaults:
    def test_surgery_defaults(self):
        options = Config().surgery_options()
        assert options == SurgeryOptions()
        assert options.max_changes_per_file == 10
        assert options.conservative_threshold == 0.30
        assert options.backup_dir == DEFAULT_BACKUP_DIR

    def test_analysis_defaults(self):
        options = Config().analysis_options()
        assert options.min_duplicate_lines == 3
        assert options.invoke_callees == DEFAULT_INVOKE_CALLEES
        assert options.max_complexity == 10


class TestConfigEnvironment:
    """SCRIPT_DOCTOR_* variables override the defaults."""

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("SCRIPT_DOCTOR_MAX_CHANGES", "3")
        monkeypatch.setenv("SCRIPT_DOCTOR_THRESHOLD", "0.5")
        monkeypatch.setenv("SCRIPT_DOCTOR_CONSERVATIVE", "false")
        monkeypatch.setenv("SCRIPT_DOCTOR_VALIDATE", "no")
        monkeypatch.setenv("SCRIPT_DOCTOR_BACKUP_DIR", ".snapshots")
        options = Config().surgery_options()
        assert options.max_changes_per_file == 3
        assert options.conservative_threshold == 0.5
        assert options.conservative is False
        assert options.validate_syntax is False
        assert options.backup_dir == ".snapshots"

    def test_max_complexity(self, monkeypatch):
        monkeypatch.setenv("SCRIPT_DOCTOR_MAX_COMPLEXITY", "4")
        assert Config().analysis_options().max_complexity == 4

    def test_callee_lists(self, monkeypatch):
        monkeypatch.setenv("SCRIPT_DOCTOR_HANDLER_CALLEES", "registerHandler, bus.on ,")
        assert Config().handler_callees == ('registerHandler', 'bus.on')

    @pytest.mark.parametrize("name,value", [
        ("SCRIPT_DOCTOR_MAX_CHANGES", "many"),
        ("SCRIPT_DOCTOR_MAX_CHANGES", "0"),
        ("SCRIPT_DOCTOR_THRESHOLD", "1.5"),
        ("SCRIPT_DOCTOR_CONSERVATIVE", "maybe"),
        ("SCRIPT_DOCTOR_MIN_DUPLICATE_LINES", "-1"),
        ("SCRIPT_DOCTOR_MAX_COMPLEXITY", "0"),
    ])
    def test_invalid_values_fail_early(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError):
            Config()

    def test_dotenv_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / '.env'
        env_file.write_text("SCRIPT_DOCTOR_MAX_CHANGES=7\n", encoding='utf-8')
        # load_dotenv writes into os.environ; register it so monkeypatch restores it
        monkeypatch.setenv("SCRIPT_DOCTOR_MAX_CHANGES", "")
        monkeypatch.delenv("SCRIPT_DOCTOR_MAX_CHANGES")
        assert Config(env_file).max_changes_per_file == 7


class TestSingleton:
    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reset_config(self):
        first = get_config()
        reset_config()
        assert get_config() is not first


class TestOptions:
    def test_with_overrides_ignores_none(self):
        options = SurgeryOptions().with_overrides(dry_run=True, conservative=None, max_changes_per_file=None)
        assert options.dry_run is True
        assert options.conservative is True
        assert options.max_changes_per_file == 10

    def test_threshold_range(self):
        with pytest.raises(ValueError):
            SurgeryOptions(conservative_threshold=-0.1)

    def test_negative_duplicate_lines(self):
        with pytest.raises(ValueError):
            AnalysisOptions(min_duplicate_lines=-1)
