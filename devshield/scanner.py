"""The scanner interface and the process-wide scanner registry."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from devshield.schema import Category, Finding, ScanContext


class Scanner(ABC):
    """A security tool that produces normalised findings.

    Subclasses set ``name`` (a unique identifier) and ``category``.
    """

    name: str
    category: Category

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the tool is ready to run."""

    @abstractmethod
    def version(self) -> str:
        """Version string of the underlying tool; raises if it cannot be determined."""

    @abstractmethod
    def scan(self, context: ScanContext) -> list[Finding]:
        """Run the scan and return normalised findings."""


class DuplicateScannerError(ValueError):
    """Raised when a scanner name is registered twice."""


_lock = threading.RLock()
_scanners: dict[str, Scanner] = {}


def register(scanner: Scanner) -> None:
    """Add a scanner to the registry; its name must be unique."""
    with _lock:
        if scanner.name in _scanners:
            raise DuplicateScannerError(f"scanner already registered: {scanner.name}")
        _scanners[scanner.name] = scanner


def get(name: str) -> Scanner | None:
    """The registered scanner with this name, or None."""
    with _lock:
        return _scanners.get(name)


def all_scanners() -> list[Scanner]:
    """All registered scanners in registration order."""
    with _lock:
        return list(_scanners.values())


def available() -> list[Scanner]:
    """Registered scanners that report themselves available, in registration order."""
    with _lock:
        return [scanner for scanner in _scanners.values() if scanner.is_available()]


def names() -> list[str]:
    """Names of all registered scanners in registration order."""
    with _lock:
        return list(_scanners)


def reset() -> None:
    """Empty the registry."""
    with _lock:
        _scanners.clear()