from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping


class EndpointSource(str, Enum):
    """Where a discovered endpoint came from."""
    DIRECT = "direct"
    LINK = "link"
    FORM = "form"
    JAVASCRIPT = "javascript"


@dataclass(frozen=True)
class Endpoint:
    """A discovered (URL, method) candidate with its provenance."""
    url: str
    method: str
    source: EndpointSource
    depth: int
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # Freeze the metadata so an endpoint can't change after extraction
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "method": self.method,
            "source": self.source.value,
            "depth": self.depth,
        }
        if self.metadata:
            data["metadata"] = {
                k: dict(v) if isinstance(v, Mapping) else v
                for k, v in self.metadata.items()
            }
        return data
