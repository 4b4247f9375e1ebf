"""Theme lookups for style-driven default values.

`References/Themes.json` shape (fields not listed are ignored):

    {
      "CurrentTheme": "v9WebLight",
      "CustomThemes": [
        {
          "name": "v9WebLight",
          "palette": [{"name": "ScreenBkgColor", "value": "RGBA(255, 255, 255, 1)"}],
          "styles": [
            {
              "name": "defaultButtonStyle",
              "controlTemplateName": "button",
              "propertyValuesMap": [{"property": "Fill", "value": "%Palette.ScreenBkgColor%"}]
            }
          ]
        }
      ]
    }
"""

from __future__ import annotations

import re
from typing import Any

_PALETTE_TOKEN_RE = re.compile(r"%Palette\.([A-Za-z0-9_]+)%")


class Theme:
    """Queryable view over the document's current theme (read-only)."""

    def __init__(self, themes_json: Any | None):
        self._styles: dict[str, dict[str, str]] = {}
        self._palette: dict[str, str] = {}
        if not isinstance(themes_json, dict):
            return

        current = themes_json.get("CurrentTheme")
        themes = themes_json.get("CustomThemes") or []
        if not isinstance(themes, list):
            return
        for theme in themes:
            if not isinstance(theme, dict) or theme.get("name") != current:
                continue
            for item in theme.get("palette") or []:
                if isinstance(item, dict) and isinstance(item.get("name"), str):
                    self._palette[item["name"]] = str(item.get("value", ""))
            for style in theme.get("styles") or []:
                if not isinstance(style, dict) or not isinstance(style.get("name"), str):
                    continue
                values: dict[str, str] = {}
                for pv in style.get("propertyValuesMap") or []:
                    if isinstance(pv, dict) and isinstance(pv.get("property"), str):
                        values[pv["property"]] = str(pv.get("value", ""))
                self._styles[style["name"]] = values
            break

    @property
    def style_names(self) -> list[str]:
        return sorted(self._styles)

    def _resolve(self, value: str) -> str:
        return _PALETTE_TOKEN_RE.sub(lambda m: self._palette.get(m.group(1), m.group(0)), value)

    def try_lookup(self, style_name: str | None, property_name: str) -> str | None:
        """Return the style's value for `property_name` with palette tokens resolved."""
        if not style_name:
            return None
        values = self._styles.get(style_name)
        if values is None or property_name not in values:
            return None
        return self._resolve(values[property_name])
