from typing import Dict, List
import logging
from bs4 import BeautifulSoup
from core.context import PageContext
from core.extractor_registry import ExtractorRegistry
from models.endpoint import Endpoint, EndpointSource

logger = logging.getLogger(__name__)

# Input types that never carry a value
SKIPPED_INPUT_TYPES = {"submit", "button", "reset"}

# Representative values for empty fields, by declared input type
SYNTHETIC_VALUES = {
    "email": "test@example.com",
    "password": "password123",
    "number": "1",
    "range": "1",
    "checkbox": "on",
    "radio": "on",
}
DEFAULT_SYNTHETIC_VALUE = "test"


def synthesize_value(input_type: str) -> str:
    return SYNTHETIC_VALUES.get((input_type or "").lower(), DEFAULT_SYNTHETIC_VALUE)


@ExtractorRegistry.register("forms")
class FormExtractor:
    """Emit one endpoint per form, with a filled-in value for each named field."""

    async def extract(self, page: PageContext) -> List[Endpoint]:
        try:
            soup = BeautifulSoup(page.html, "html.parser")
        except Exception as e:
            logger.debug(f"Skipping forms on {page.url}: {e}")
            return []

        endpoints: List[Endpoint] = []
        for form in soup.find_all("form"):
            action = (form.get("action") or "").strip() or page.url
            url = page.resolve(action)
            if not url:
                continue

            method = (form.get("method") or "GET").strip().upper() or "GET"
            endpoints.append(
                Endpoint(
                    url=url,
                    method=method,
                    source=EndpointSource.FORM,
                    depth=page.child_depth,
                    metadata={"inputs": self._collect_inputs(form)},
                )
            )
        return endpoints

    def _collect_inputs(self, form) -> Dict[str, str]:
        inputs: Dict[str, str] = {}
        for field in form.find_all(["input", "textarea", "select"]):
            name = field.get("name")
            input_type = (field.get("type") or "").lower()
            if not name or input_type in SKIPPED_INPUT_TYPES:
                continue
            inputs[name] = field.get("value") or synthesize_value(input_type)
        return inputs
