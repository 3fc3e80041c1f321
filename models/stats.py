from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class Stats:
    """Cumulative counters for the lifetime of a scanner (until reset)."""
    total_requests: int = 0
    successful: int = 0  # 2xx
    failed: int = 0  # >= 400
    errors: int = 0  # transport failures
    total_discovered: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    discovery_start_time: Optional[datetime] = None
    scan_start_time: Optional[datetime] = None
    # Durations in seconds
    duration: float = 0.0
    discovery_duration: float = 0.0
    scan_duration: float = 0.0

    def copy(self) -> "Stats":
        return Stats(**asdict(self))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("start_time", "discovery_start_time", "scan_start_time"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data
