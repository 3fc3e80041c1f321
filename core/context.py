from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urldefrag, urlparse

# Targets that never lead to a fetchable page on the same host
EXCLUDED_PREFIXES = ("#", "javascript:", "mailto:", "tel:")


def normalize_url(url: str) -> str:
    """Canonical form used as the visited-set key: fragment stripped, empty path as '/'."""
    url, _ = urldefrag(url)
    parsed = urlparse(url)
    if not parsed.path:
        parsed = parsed._replace(path="/")
    return parsed.geturl()


@dataclass(frozen=True)
class PageContext:
    """One fetched page, as handed to the endpoint extractors."""
    base_url: str
    url: str  # absolute URL of this page
    html: str
    depth: int  # depth of this page; extracted endpoints sit at depth + 1
    status_code: Optional[int] = None
    content_type: Optional[str] = None

    @property
    def child_depth(self) -> int:
        return self.depth + 1

    def resolve(self, href: str) -> Optional[str]:
        """Resolve ``href`` against this page, restricted to the base host.

        Returns None for fragments, pseudo-schemes, non-HTTP targets and
        anything pointing at another host.
        """
        href = (href or "").strip()
        if not href or href.lower().startswith(EXCLUDED_PREFIXES):
            return None

        try:
            resolved = urljoin(self.url, href)
            parsed = urlparse(resolved)
        except ValueError:
            return None
        if parsed.scheme not in ("http", "https"):
            return None
        if parsed.netloc.lower() != urlparse(self.base_url).netloc.lower():
            return None
        return normalize_url(resolved)
