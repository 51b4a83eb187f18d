"""Audit logging for route changes pushed to the OS.

Every call to `networksetup -setadditionalroutes` made by reconciliation is
recorded as one JSON line, successful or not, so the live route table can be
reconstructed after the fact.
"""
import json
import logging
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Dedicated audit logger
audit_logger = logging.getLogger("splitr.audit")

AUDIT_LOG_FILE = "audit.log"
AUDIT_LOG_BACKUPS = 10


def setup_audit_logging(log_dir: Path) -> None:
    """Configure audit logging to `<log_dir>/audit.log`."""
    log_dir.mkdir(parents=True, exist_ok=True)

    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()

    handler = RotatingFileHandler(
        log_dir / AUDIT_LOG_FILE,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=AUDIT_LOG_BACKUPS,
        encoding="utf-8",
    )
    # One JSON document per line
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)

    # Don't propagate to the main splitr logger
    audit_logger.propagate = False


@dataclass
class RouteChangeRecord:
    """Record of one additional-routes replacement."""
    timestamp: str
    network_id: Optional[int]
    network_name: str
    operation: str  # sync, reset
    success: bool
    routes: list[list[str]] = field(default_factory=list)
    error: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=None)

    @classmethod
    def from_json(cls, json_str: str) -> "RouteChangeRecord":
        return cls(**json.loads(json_str))


def log_route_change(
    network_id: Optional[int],
    network_name: str,
    operation: str,
    routes: list[list[str]],
    success: bool,
    error: Optional[str] = None,
) -> RouteChangeRecord:
    """Write a route change to the audit log and return the record."""
    record = RouteChangeRecord(
        timestamp=datetime.now(timezone.utc).isoformat(),
        network_id=network_id,
        network_name=network_name,
        operation=operation,
        success=success,
        routes=routes,
        error=error,
    )
    audit_logger.info(record.to_json())
    return record


def _read_records(log_file: Path, network_name: Optional[str]) -> list[RouteChangeRecord]:
    records = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = RouteChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if network_name and record.network_name != network_name:
                continue
            records.append(record)
    return records


def get_recent_changes(
    log_file: Path,
    network_name: Optional[str] = None,
    limit: int = 100,
) -> list[RouteChangeRecord]:
    """Read recent route changes, most recent first.

    Rotated backups (`audit.log.1` is the newest) are read after the live
    file until `limit` records are collected.
    """
    paths = [log_file] + [
        log_file.with_name(f"{log_file.name}.{n}") for n in range(1, AUDIT_LOG_BACKUPS + 1)
    ]

    records: list[RouteChangeRecord] = []
    for path in paths:
        if len(records) >= limit:
            break
        if not path.exists():
            continue
        records.extend(reversed(_read_records(path, network_name)))

    return records[:limit]
