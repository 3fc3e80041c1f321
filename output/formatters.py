"""Result exporters: JSON, Markdown table and plain text."""
import json
from typing import Any, Dict, List, Sequence, Union

from models.endpoint import Endpoint
from models.result import ScanResult

Record = Union[ScanResult, Endpoint, Dict[str, Any]]


def _as_dict(record: Record) -> Dict[str, Any]:
    if isinstance(record, dict):
        return record
    return record.to_dict()


class JSONFormatter:
    def __init__(self, pretty: bool = True):
        self.pretty = pretty

    def format(self, records: Sequence[Record]) -> str:
        data = [_as_dict(r) for r in records]
        if self.pretty:
            return json.dumps(data, indent=2)
        return json.dumps(data)


class MarkdownFormatter:
    """Table of responsive probe results (2xx and 3xx only), followed by a
    table of crawled endpoints when any are given."""

    def format(self, records: Sequence[Record]) -> str:
        lines: List[str] = [
            "# API Endpoints Discovery",
            "",
            "| Method | URL | Status | Size | Title |",
            "|--------|-----|--------|------|-------|",
        ]
        discovered: List[Dict[str, Any]] = []
        for record in records:
            r = _as_dict(record)
            if "status_code" not in r and "source" in r:
                discovered.append(r)
                continue
            status = r.get("status_code") or 0
            if 200 <= status < 400:
                title = (r.get("title") or "").replace("|", "\\|")
                lines.append(f"| {r.get('method', '')} | `{r.get('url', '')}` | {status} | {r.get('size') or 0} | {title} |")

        if discovered:
            lines += [
                "",
                "## Discovered Endpoints",
                "",
                "| Method | URL | Source | Depth |",
                "|--------|-----|--------|-------|",
            ]
            for r in discovered:
                lines.append(f"| {r.get('method', '')} | `{r.get('url', '')}` | {r.get('source', '')} | {r.get('depth', 0)} |")
        return "\n".join(lines) + "\n"


class SimpleFormatter:
    """One ``METHOD URL - STATUS`` line per record."""

    def format(self, records: Sequence[Record]) -> str:
        lines = []
        for record in records:
            r = _as_dict(record)
            status = r.get("status_code")
            if status is None:
                status = r.get("source", "")
            line = f"{r.get('method', '')} {r.get('url', '')} - {status}"
            if r.get("error"):
                line += f" ({r['error']})"
            lines.append(line)
        return "\n".join(lines) + ("\n" if lines else "")


FORMATTERS = {
    "json": JSONFormatter,
    "markdown": MarkdownFormatter,
    "simple": SimpleFormatter,
}


def get_formatter(name: str, **kwargs):
    """Look up an exporter by name ('json', 'markdown', 'simple')."""
    try:
        return FORMATTERS[name.lower()](**kwargs)
    except KeyError:
        raise ValueError(f"Unknown output format: {name} (available: {', '.join(FORMATTERS)})") from None
