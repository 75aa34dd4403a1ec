"""Persistent chart preferences and templates."""

from tradeguard.preferences.models import ChartPreferences, ChartTemplate, TemplateConfiguration
from tradeguard.preferences.repository import (
    PreferencesRepository,
    apply_template,
    configuration_from,
)
from tradeguard.preferences.templates import TemplateManager

__all__ = [
    "ChartPreferences",
    "ChartTemplate",
    "TemplateConfiguration",
    "PreferencesRepository",
    "TemplateManager",
    "apply_template",
    "configuration_from",
]
