"""Heuristic endpoint extraction from client-side script embedded in a page.

This is pattern matching, not a JavaScript parser: some hits are not real
endpoints and some real endpoints are missed.
"""
from typing import List, Set, Tuple
import re
from core.context import PageContext
from core.extractor_registry import ExtractorRegistry
from models.endpoint import Endpoint, EndpointSource

_Q = r"""['"`]"""
_URL = r"""(?P<path>[^'"`\s]+)"""
_VERB = r"(?P<method>GET|POST|PUT|DELETE|PATCH)"

# (name, compiled pattern). Patterns with a "method" group encode the HTTP verb.
SCRIPT_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("fetch_method", re.compile(rf"fetch\(\s*{_Q}{_URL}{_Q}[^)]*?method\s*:\s*{_Q}{_VERB}{_Q}", re.IGNORECASE)),
    ("fetch", re.compile(rf"fetch\(\s*{_Q}{_URL}{_Q}")),
    ("axios_verb", re.compile(rf"axios\.{_VERB}\(\s*{_Q}{_URL}{_Q}", re.IGNORECASE)),
    ("axios_config", re.compile(rf"axios\([^)]*?url\s*:\s*{_Q}{_URL}{_Q}")),
    ("xhr_open", re.compile(rf"\.open\(\s*{_Q}{_VERB}{_Q}\s*,\s*{_Q}{_URL}{_Q}", re.IGNORECASE)),
    ("jquery_verb", re.compile(rf"\$\.(?P<method>get|post)\(\s*{_Q}{_URL}{_Q}", re.IGNORECASE)),
    ("jquery_ajax", re.compile(rf"\$\.(?:get|post|ajax)\([^)]*?url\s*:\s*{_Q}{_URL}{_Q}")),
    ("window_location", re.compile(rf"window\.location\s*=\s*{_Q}{_URL}{_Q}")),
    ("location_href", re.compile(rf"location\.href\s*=\s*{_Q}{_URL}{_Q}")),
    ("path_literal", re.compile(r"""['"](?P<path>/[^'"\s]+)['"]""")),
]


@ExtractorRegistry.register("script_content")
class ScriptExtractor:
    """Recover request paths (and verbs, when the call site names one) from script idioms."""

    async def extract(self, page: PageContext) -> List[Endpoint]:
        endpoints: List[Endpoint] = []
        seen: Set[Tuple[str, str]] = set()

        for name, pattern in SCRIPT_PATTERNS:
            for match in pattern.finditer(page.html):
                groups = match.groupdict()
                url = page.resolve(groups.get("path") or "")
                if not url:
                    continue

                method = (groups.get("method") or "GET").upper()
                if (url, method) in seen:
                    continue
                seen.add((url, method))

                endpoints.append(
                    Endpoint(
                        url=url,
                        method=method,
                        source=EndpointSource.JAVASCRIPT,
                        depth=page.child_depth,
                        metadata={"pattern": name},
                    )
                )

        return endpoints
