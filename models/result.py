from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class ScanResult:
    """Outcome of a single probe.

    A failed probe carries ``status_code == 0`` and a non-empty ``error``;
    a completed one carries the response status and no error.
    """
    url: str
    method: str
    status_code: int = 0
    size: int = 0
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    title: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None
    found_via: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def ok(self) -> bool:
        return not self.error and self.status_code > 0

    def with_source(self, found_via: str) -> "ScanResult":
        """Copy of this result tagged with how it was found."""
        return ScanResult(
            url=self.url,
            method=self.method,
            status_code=self.status_code,
            size=self.size,
            headers=self.headers,
            title=self.title,
            timestamp=self.timestamp,
            error=self.error,
            found_via=found_via,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "method": self.method,
            "status_code": self.status_code,
            "size": self.size,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.headers:
            data["headers"] = dict(self.headers)
        if self.title:
            data["title"] = self.title
        if self.found_via:
            data["found_via"] = self.found_via
        if self.error:
            data["error"] = self.error
        return data
