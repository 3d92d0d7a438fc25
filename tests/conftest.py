"""Shared fixtures for the Script Doctor test suite."""
import pytest

from scriptdoctor.analyzer.parser import LanguageParser
from scriptdoctor.config import reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from default settings and a fresh config singleton."""
    for name in (
        "SCRIPT_DOCTOR_MAX_CHANGES", "SCRIPT_DOCTOR_THRESHOLD", "SCRIPT_DOCTOR_CONSERVATIVE",
        "SCRIPT_DOCTOR_VALIDATE", "SCRIPT_DOCTOR_BACKUP_DIR", "SCRIPT_DOCTOR_MIN_DUPLICATE_LINES",
        "SCRIPT_DOCTOR_HANDLER_CALLEES", "SCRIPT_DOCTOR_INVOKE_CALLEES", "SCRIPT_DOCTOR_MAX_COMPLEXITY",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def js_parser():
    return LanguageParser('javascript')


@pytest.fixture
def parse_js(js_parser):
    """Parse a JS snippet and return (tree, source bytes)."""
    def _parse(code: str):
        source = code.encode('utf-8')
        return js_parser.parse_source(source), source
    return _parse
