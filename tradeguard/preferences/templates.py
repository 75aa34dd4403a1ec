"""Saved chart templates with a default and an active selection."""

import json
import random
import string
import time
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from tradeguard.preferences.models import ChartTemplate, TemplateConfiguration

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_template_id() -> str:
    """Unique id of the form ``template_<ms>_<9 random chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"template_{int(time.time() * 1000)}_{suffix}"


class TemplateManager:
    """CRUD over chart templates persisted in one JSON file.

    Every mutation is written to disk immediately.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize the manager and load stored templates.

        Args:
            path: JSON file holding templates and the active template id
        """
        self.path = Path(path)
        self.templates: List[ChartTemplate] = []
        self.active_template_id: Optional[str] = None
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self.templates = [ChartTemplate.from_dict(t) for t in data.get("templates", [])]
            self.active_template_id = data.get("active_template_id")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Error loading templates from {self.path}: {e}")
            self.templates = []
            self.active_template_id = None

    def _save(self) -> None:
        data: Dict[str, Any] = {
            "templates": [t.to_dict() for t in self.templates],
            "active_template_id": self.active_template_id,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Error saving templates to {self.path}: {e}")

    def _find(self, template_id: str) -> Optional[ChartTemplate]:
        return next((t for t in self.templates if t.id == template_id), None)

    def save_template(
        self,
        name: str,
        configuration: TemplateConfiguration,
        description: Optional[str] = None,
        is_default: bool = False,
    ) -> str:
        """Store a new template and return its id."""
        now = _now_iso()
        template = ChartTemplate(
            id=generate_template_id(),
            name=name,
            description=description,
            configuration=configuration,
            created_at=now,
            last_modified=now,
            is_default=is_default,
        )
        self.templates.append(template)
        self._save()
        logger.info(f"Saved template '{name}' ({template.id})")
        return template.id

    def load_template(self, template_id: str) -> Optional[TemplateConfiguration]:
        """Mark a template active and return its configuration.

        Returns:
            The configuration, or None when the id is unknown
        """
        template = self._find(template_id)
        if template is None:
            logger.error(f"Template not found: {template_id}")
            return None
        self.active_template_id = template_id
        self._save()
        return template.configuration

    def delete_template(self, template_id: str) -> None:
        """Remove a template; clears the active selection if it was active."""
        self.templates = [t for t in self.templates if t.id != template_id]
        if self.active_template_id == template_id:
            self.active_template_id = None
        self._save()

    def set_as_default(self, template_id: str) -> None:
        """Make one template the default and unmark all others."""
        now = _now_iso()
        self.templates = [
            replace(
                t,
                is_default=t.id == template_id,
                last_modified=now if t.id == template_id else t.last_modified,
            )
            for t in self.templates
        ]
        self._save()

    def update_active_template(self, configuration: TemplateConfiguration) -> None:
        """Overwrite the active template's configuration; no-op without one."""
        if not self.active_template_id:
            return
        now = _now_iso()
        self.templates = [
            replace(t, configuration=configuration, last_modified=now)
            if t.id == self.active_template_id
            else t
            for t in self.templates
        ]
        self._save()

    def get_default_template(self) -> Optional[ChartTemplate]:
        return next((t for t in self.templates if t.is_default), None)

    def get_active_template(self) -> Optional[ChartTemplate]:
        if not self.active_template_id:
            return None
        return self._find(self.active_template_id)
