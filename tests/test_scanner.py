import pytest

from devshield import scanner as registry
from devshield.scanner import DuplicateScannerError, Scanner
from devshield.schema import Category, ScanContext


class MockScanner(Scanner):
    def __init__(self, name, category=Category.SECRETS, is_ready=True, tool_version="1.0.0"):
        self.name = name
        self.category = category
        self._ready = is_ready
        self._version = tool_version

    def is_available(self):
        return self._ready

    def version(self):
        return self._version

    def scan(self, context):
        return []


@pytest.fixture(autouse=True)
def clean_registry():
    registry.reset()
    yield
    registry.reset()


def test_register_and_get():
    registry.register(MockScanner("test-scanner"))
    found = registry.get("test-scanner")
    assert found.name == "test-scanner"
    assert found.version() == "1.0.0"


def test_get_not_found():
    assert registry.get("nonexistent") is None


def test_register_duplicate_raises():
    s = MockScanner("dup-scanner")
    registry.register(s)
    with pytest.raises(DuplicateScannerError, match="dup-scanner"):
        registry.register(s)


def test_all_preserves_order():
    for name in ("alpha", "beta", "gamma"):
        registry.register(MockScanner(name))
    assert [s.name for s in registry.all_scanners()] == ["alpha", "beta", "gamma"]


def test_available_filters_unavailable():
    registry.register(MockScanner("avail"))
    registry.register(MockScanner("unavail", is_ready=False))
    registry.register(MockScanner("avail2"))
    assert [s.name for s in registry.available()] == ["avail", "avail2"]


def test_names():
    registry.register(MockScanner("foo"))
    registry.register(MockScanner("bar"))
    assert registry.names() == ["foo", "bar"]


def test_names_returns_a_copy():
    registry.register(MockScanner("foo"))
    listed = registry.names()
    listed.append("bar")
    assert registry.names() == ["foo"]


def test_reset():
    registry.register(MockScanner("will-be-cleared"))
    registry.reset()
    assert registry.all_scanners() == []
    assert registry.get("will-be-cleared") is None


def test_scanner_interface_is_abstract():
    with pytest.raises(TypeError):
        Scanner()


def test_mock_scan_returns_findings_list():
    s = MockScanner("x")
    assert s.scan(ScanContext(root_path="/tmp")) == []