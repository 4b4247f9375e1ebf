"""Templates that exist only as code (no XML in the document).

`screen`, `appinfo` (the App object) and `component` are constructed by the
authoring service rather than shipped as template files, so their defaults
live here, keyed by app type.
"""

from __future__ import annotations

from canvasdoc.templates.parser import APP_TYPE_PHONE, ControlTemplate

_SCREEN_COMMON = {
    "Fill": "RGBA(255, 255, 255, 1)",
    "ImagePosition": "ImagePosition.Fit",
    "LoadingSpinner": "LoadingSpinner.None",
    "LoadingSpinnerColor": "RGBA(56, 96, 178, 1)",
    "OnHidden": "",
    "OnVisible": "",
}

_SCREEN_BY_APP_TYPE = {
    APP_TYPE_PHONE: {
        "Height": "Max(App.Height, App.MinScreenHeight)",
        "Width": "Max(App.Width, App.MinScreenWidth)",
        "Orientation": "If(Self.Width < Self.Height, Layout.Vertical, Layout.Horizontal)",
    },
    "DesktopOrTablet": {
        "Height": "Max(App.Height, App.MinScreenHeight)",
        "Width": "Max(App.Width, App.MinScreenWidth)",
        "Orientation": "If(Self.Width < Self.Height, Layout.Vertical, Layout.Horizontal)",
        "Size": "1 + CountRows(App.SizeBreakpoints) - CountIf(App.SizeBreakpoints, Value >= Self.Width)",
    },
}

_APPINFO_COMMON = {
    "OnStart": "",
    "OnError": "",
    "StartScreen": "",
    "Theme": "PowerAppsTheme",
    "ConfirmExit": "false",
    "BackEnabled": "false",
}

_APPINFO_BY_APP_TYPE = {
    APP_TYPE_PHONE: {
        "MinScreenHeight": "640",
        "MinScreenWidth": "320",
        "SizeBreakpoints": "[600, 900, 1200]",
    },
    "DesktopOrTablet": {
        "MinScreenHeight": "320",
        "MinScreenWidth": "320",
        "SizeBreakpoints": "[600, 900, 1200]",
    },
}

_COMPONENT_COMMON = {
    "Fill": "RGBA(0, 0, 0, 0)",
    "Height": "640",
    "Width": "640",
    "X": "0",
    "Y": "0",
}

CODE_ONLY_TEMPLATE_NAMES = ("screen", "appinfo", "component")


def code_only_templates(app_type: str | None) -> list[ControlTemplate]:
    """Return fresh code-only templates for `app_type` (unknown types use tablet defaults)."""
    key = app_type if app_type in _SCREEN_BY_APP_TYPE else "DesktopOrTablet"
    return [
        ControlTemplate(
            name="screen",
            id="http://microsoft.com/appmagic/screen",
            version="1.0",
            input_defaults={**_SCREEN_COMMON, **_SCREEN_BY_APP_TYPE[key]},
        ),
        ControlTemplate(
            name="appinfo",
            id="http://microsoft.com/appmagic/appinfo",
            version="1.0",
            input_defaults={**_APPINFO_COMMON, **_APPINFO_BY_APP_TYPE[key]},
        ),
        ControlTemplate(
            name="component",
            id="http://microsoft.com/appmagic/Component",
            version="1.0",
            input_defaults=dict(_COMPONENT_COMMON),
        ),
    ]


def add_code_only_templates(defaults: dict[str, ControlTemplate], app_type: str | None) -> None:
    """Add code-only templates; templates already parsed from the document win."""
    for template in code_only_templates(app_type):
        defaults.setdefault(template.name, template)
