"""Data models for event aggregation."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class RawRecord:
    """Provisional event produced by a source adapter."""
    title: str
    start: Optional[str]
    end: Optional[str] = None
    url: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class Event:
    """Normalized event published in the feed.

    ``start`` and ``end`` are ISO 8601 strings. A value carrying a UTC offset
    (or ``Z``) is an instant; a value without one is local wall-clock time.
    """
    title: str
    start: str
    source: str
    end: Optional[str] = None
    url: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @property
    def identity_key(self) -> str:
        return f"{self.source}|{self.title}|{self.start}".lower()

    @property
    def is_local_time(self) -> bool:
        tail = self.start[10:]
        return not (tail.endswith('Z') or '+' in tail or '-' in tail)

    def to_dict(self) -> dict:
        data = {'title': self.title, 'start': self.start}
        if self.end:
            data['end'] = self.end
        data['source'] = self.source
        if self.url:
            data['url'] = self.url
        data['tags'] = list(self.tags)
        return data


@dataclass
class AdapterResult:
    """Outcome of one adapter fetch: records, or the error that stopped it."""
    source: str
    records: List[RawRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class StatusSummary:
    """Per-source summary written next to the event feed."""
    generated_at: str
    total: int
    counts: Dict[str, int]
    errors: List[str]

    def to_dict(self) -> dict:
        return {
            'generatedAt': self.generated_at,
            'total': self.total,
            'counts': dict(self.counts),
            'errors': list(self.errors)
        }
