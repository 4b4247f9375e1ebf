"""Control template grammar parser.

Templates are XML widget definitions embedded as text in
`References/Templates.json`. Only what default resolution needs is read:

    <widget name="button" id="http://microsoft.com/appmagic/button" version="2.2.0">
      <properties>
        <property name="Text" defaultValue="&quot;Button&quot;"
                  phoneDefaultValue="..." webDefaultValue="..."/>
      </properties>
    </widget>

Namespaces are ignored. `phoneDefaultValue` applies to app type `Phone`,
`webDefaultValue` to `DesktopOrTablet`; otherwise `defaultValue`.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

APP_TYPE_PHONE = "Phone"
APP_TYPE_TABLET = "DesktopOrTablet"

_APP_TYPE_OVERRIDE_ATTR = {
    APP_TYPE_PHONE: "phoneDefaultValue",
    APP_TYPE_TABLET: "webDefaultValue",
}


@dataclass
class ControlTemplate:
    name: str
    id: str | None = None
    version: str | None = None
    input_defaults: dict[str, str] = field(default_factory=dict)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def parse_template(text: str, app_type: str | None) -> ControlTemplate:
    """Parse one template definition.

    Raises:
        ValueError: on malformed XML or a missing/invalid widget root.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValueError("template text is empty")
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ValueError(f"malformed template XML: {e}") from e

    if _local(root.tag) != "widget":
        raise ValueError(f"expected <widget> root, got <{_local(root.tag)}>")
    name = root.get("name")
    if not name:
        raise ValueError("widget is missing 'name'")

    override_attr = _APP_TYPE_OVERRIDE_ATTR.get(app_type or "")
    defaults: dict[str, str] = {}
    for el in root.iter():
        if _local(el.tag) != "property":
            continue
        prop = el.get("name")
        if not prop:
            continue
        value = el.get(override_attr) if override_attr else None
        if value is None:
            value = el.get("defaultValue")
        if value is not None:
            defaults[prop] = value

    return ControlTemplate(name=name, id=root.get("id"), version=root.get("version"), input_defaults=defaults)


def try_parse_template(
    text: str,
    app_type: str | None,
    defaults: dict[str, ControlTemplate],
) -> tuple[bool, ControlTemplate | None]:
    """Parse `text` and register it in `defaults` keyed by template name.

    Returns (ok, template); never raises for grammar problems.
    """
    try:
        template = parse_template(text, app_type)
    except ValueError as e:
        logger.debug("template parse failed: %s", e)
        return False, None
    defaults[template.name] = template
    return True, template
