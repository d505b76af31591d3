"""
StubTap Call Log

Append-only record of every intercepted call, matched or not.
"""

from datetime import datetime
from typing import Dict, Any, List, Optional, Iterator, Union
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CallOptions:
    """Headers and raw body of an intercepted call."""

    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        body = self.body.decode('utf-8', errors='replace') if isinstance(self.body, bytes) else self.body
        return {'headers': dict(self.headers), 'body': body}


@dataclass(frozen=True)
class CallRecord:
    """Snapshot of one intercepted call."""

    url: str
    method: str
    options: CallOptions = field(default_factory=CallOptions)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'url': self.url,
            'method': self.method,
            'options': self.options.to_dict(),
            'timestamp': self.timestamp
        }


class CallLog:
    """Chronological list of CallRecords."""

    def __init__(self):
        self._records: List[CallRecord] = []

    def append(self, record: CallRecord):
        self._records.append(record)

    def query(self, url: Optional[str] = None) -> List[CallRecord]:
        """
        Return recorded calls, optionally only those to an exact URL.

        Args:
            url: URL to filter on (exact string equality), or None for all

        Returns:
            List of CallRecords in call order
        """
        if url is None:
            return list(self._records)
        return [record for record in self._records if record.url == url]

    def clear(self):
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CallRecord]:
        return iter(list(self._records))
