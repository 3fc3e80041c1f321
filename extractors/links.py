from typing import List, Optional
import logging
import re
from bs4 import BeautifulSoup
from core.context import PageContext
from core.extractor_registry import ExtractorRegistry
from models.endpoint import Endpoint, EndpointSource

logger = logging.getLogger(__name__)

# Lenient fallback: quoted or bare href values inside anchor start tags
ANCHOR_HREF_PATTERN = re.compile(
    r'<a\b[^>]*?\bhref\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s>]+))',
    re.IGNORECASE | re.DOTALL,
)


@ExtractorRegistry.register("links", follow=True)
class LinkExtractor:
    """Collect same-host anchor targets. These are the only hits the crawler follows."""

    async def extract(self, page: PageContext) -> List[Endpoint]:
        try:
            return self._extract_with_parser(page)
        except Exception as e:
            logger.debug(f"HTML parse failed for {page.url}, falling back to tag scan: {e}")
            return self._extract_with_tokenizer(page)

    def _extract_with_parser(self, page: PageContext) -> List[Endpoint]:
        endpoints: List[Endpoint] = []
        soup = BeautifulSoup(page.html, "html.parser")

        for anchor in soup.find_all("a", href=True):
            endpoint = self._make_endpoint(page, anchor.get("href"), anchor.get_text(strip=True))
            if endpoint:
                endpoints.append(endpoint)
        return endpoints

    def _extract_with_tokenizer(self, page: PageContext) -> List[Endpoint]:
        endpoints: List[Endpoint] = []
        for match in ANCHOR_HREF_PATTERN.finditer(page.html):
            href = next((g for g in match.groups() if g is not None), "")
            endpoint = self._make_endpoint(page, href)
            if endpoint:
                endpoints.append(endpoint)
        return endpoints

    def _make_endpoint(self, page: PageContext, href: str, text: Optional[str] = None) -> Optional[Endpoint]:
        url = page.resolve(href)
        if not url:
            return None
        metadata = {"text": text} if text else {}
        return Endpoint(
            url=url,
            method="GET",
            source=EndpointSource.LINK,
            depth=page.child_depth,
            metadata=metadata,
        )
