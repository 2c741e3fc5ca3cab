"""Finding suppression: ``.devshield-ignore`` files and config entries with expiry dates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Iterable

from devshield.schema import Finding

IGNORE_FILE_NAME = ".devshield-ignore"

_DATE_SHAPE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _parse_date(text: str) -> datetime | None:
    """Parse YYYY-MM-DD as midnight UTC; None if the text is not such a date."""
    if not _DATE_SHAPE.fullmatch(text):
        return None
    try:
        day = date.fromisoformat(text)
    except ValueError:
        return None
    return datetime.combine(day, time(), tzinfo=timezone.utc)


@dataclass
class Suppression:
    """One suppression rule: a finding ID or fingerprint, a reason and an optional expiry."""

    id: str
    reason: str = ""
    expires: datetime | None = None


@dataclass
class ConfigSuppression:
    """A suppression entry as written in the configuration file."""

    id: str
    reason: str = ""
    expires: str = ""


class SuppressionEngine:
    """Collects suppressions and marks matching findings as suppressed."""

    def __init__(
        self,
        root_path: str | Path,
        config_suppressions: Iterable[ConfigSuppression] | None = None,
    ) -> None:
        self.suppressions: list[Suppression] = []

        ignore_path = Path(root_path) / IGNORE_FILE_NAME
        if ignore_path.exists():
            self.suppressions.extend(parse_ignore_file(ignore_path))

        for entry in config_suppressions or ():
            expires = _parse_date(entry.expires) if entry.expires else None
            self.suppressions.append(Suppression(entry.id, entry.reason, expires))

    def apply(self, findings: Iterable[Finding]) -> list[Finding]:
        """Mark findings whose fingerprint or ID has an unexpired suppression."""
        now = datetime.now(timezone.utc)
        active = {
            sup.id: sup
            for sup in self.suppressions
            if sup.expires is None or not sup.expires < now
        }
        result = list(findings)
        for finding in result:
            if finding.fingerprint in active or finding.id in active:
                finding.suppressed = True
        return result


def parse_ignore_file(path: str | Path) -> list[Suppression]:
    """Parse an ignore file.

    Each non-comment line reads
    ``<finding-id-or-fingerprint> # reason: <reason> expires: <YYYY-MM-DD>``,
    where everything after ``#`` is optional.
    """
    suppressions: list[Suppression] = []
    with open(path, encoding="utf-8", errors="replace") as handle:
        for raw in handle:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            ident, has_meta, metadata = line.partition("#")
            sup = Suppression(id=ident.strip())

            if has_meta:
                reason_at = metadata.find("reason:")
                if reason_at >= 0:
                    rest = metadata[reason_at + len("reason:"):]
                    expires_at = rest.find("expires:")
                    sup.reason = (rest[:expires_at] if expires_at >= 0 else rest).strip()

                expires_at = metadata.find("expires:")
                if expires_at >= 0:
                    date_text = metadata[expires_at + len("expires:"):].strip()
                    date_text = date_text.split(" ", 1)[0]
                    sup.expires = _parse_date(date_text)

            if sup.id:
                suppressions.append(sup)
    return suppressions