"""Control templates: grammar parser, code-only templates, theme lookups.

Default resolution produces the table the transform pipeline strips against.
"""

from __future__ import annotations

from .builtin import CODE_ONLY_TEMPLATE_NAMES, add_code_only_templates
from .parser import APP_TYPE_PHONE, APP_TYPE_TABLET, ControlTemplate, parse_template, try_parse_template
from .resolve import TemplateStore, resolve_template_defaults, used_templates
from .theme import Theme

__all__ = [
    "APP_TYPE_PHONE",
    "APP_TYPE_TABLET",
    "CODE_ONLY_TEMPLATE_NAMES",
    "ControlTemplate",
    "TemplateStore",
    "Theme",
    "add_code_only_templates",
    "parse_template",
    "resolve_template_defaults",
    "try_parse_template",
    "used_templates",
]
