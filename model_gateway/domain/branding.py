"""Branding - Pure business logic."""

from __future__ import annotations

from typing import Any, Mapping

from model_gateway.domain.models import BrandingSetting

SECTIONS = ("colors", "typography", "elements")
_CSS_PREFIXES = {"colors": "color", "typography": "typography", "elements": "element"}


def merged_settings(
    setting: BrandingSetting | None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Fusionne un preset avec des surcharges (fusion superficielle par section)."""
    overrides = overrides or {}
    merged: dict[str, Any] = {}
    for section in SECTIONS:
        base = dict(getattr(setting, section)) if setting else {}
        base.update(overrides.get(section) or {})
        merged[section] = base
    merged["logo_url"] = overrides.get("logo_url") or (setting.logo_url if setting else None)
    return merged


def generate_css_variables(settings: Mapping[str, Any]) -> str:
    """Génère le bloc :root { --color-x: ...; } consommé par le widget."""
    lines = [":root {"]
    for section in SECTIONS:
        values = settings.get(section)
        if not isinstance(values, Mapping):
            continue
        prefix = _CSS_PREFIXES[section]
        for name, value in values.items():
            lines.append(f"  --{prefix}-{name}: {value};")
    lines.append("}")
    return "\n".join(lines) + "\n"
