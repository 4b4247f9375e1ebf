"""Template default resolution for a document.

Builds the default-value table (template name -> `ControlTemplate`) from every
template referenced by the templates shard, then adds code-only templates for
the document's app type. A referenced template that fails to parse is fatal:
without it, default stripping cannot be reversed correctly.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from canvasdoc.core.errors import DocumentError, ErrorKind
from canvasdoc.core.model import TemplateEntry
from canvasdoc.templates.builtin import add_code_only_templates
from canvasdoc.templates.parser import ControlTemplate, try_parse_template

logger = logging.getLogger(__name__)


def used_templates(templates_json: Any | None) -> list[TemplateEntry]:
    """Return `UsedTemplates` entries of a templates shard (empty if absent)."""
    if templates_json is None:
        return []
    if not isinstance(templates_json, dict):
        raise ValueError("References/Templates.json: expected JSON object")
    items = templates_json.get("UsedTemplates") or []
    if not isinstance(items, list):
        raise ValueError("References/Templates.json: UsedTemplates must be an array")
    return [TemplateEntry.from_json(item, where=f"UsedTemplates[{i}]") for i, item in enumerate(items)]


def resolve_template_defaults(templates_json: Any | None, app_type: str | None) -> dict[str, ControlTemplate]:
    """Parse referenced templates and add code-only ones.

    Raises:
        DocumentError(TemplateParseFailure): if any referenced template is invalid.
    """
    defaults: dict[str, ControlTemplate] = {}
    for entry in used_templates(templates_json):
        ok, _ = try_parse_template(entry.template, app_type, defaults)
        if not ok:
            raise DocumentError(
                ErrorKind.TEMPLATE_PARSE_FAILURE,
                f"Unable to parse template file {entry.name}",
            )
    add_code_only_templates(defaults, app_type)
    logger.debug("resolved %d template(s) for app type %s", len(defaults), app_type)
    return defaults


class TemplateStore:
    """Per-document side store holding the resolved default-value table.

    Filled once after a successful load; save paths only read it.
    """

    def __init__(self) -> None:
        self._templates: dict[str, ControlTemplate] = {}
        self._resolved = False

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    def set_resolved(self, templates: dict[str, ControlTemplate]) -> None:
        self._templates = dict(templates)
        self._resolved = True

    def defaults(self) -> dict[str, ControlTemplate]:
        return dict(self._templates)

    def get(self, name: str) -> ControlTemplate | None:
        return self._templates.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._templates))

    def __len__(self) -> int:
        return len(self._templates)
