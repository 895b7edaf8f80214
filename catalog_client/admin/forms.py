"""Form drafts and client-side validation for admin create/edit dialogs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from catalog_client.api.errors import ValidationFailure
from catalog_client.catalog.models import ALL_CATEGORIES
from catalog_client.catalog.query import parse_number


class FormMode(StrEnum):
    CREATE = "create"
    EDIT = "edit"


@dataclass
class FormDraft:
    """Open create/edit dialog state.

    ``target`` holds the edited entity id and is required exactly when the
    mode is ``edit``. Field values are kept as entered, untrimmed, so a failed
    submit can show them back for correction.
    """

    mode: FormMode
    fields: dict[str, str] = field(default_factory=dict)
    target: str | None = None

    def __post_init__(self) -> None:
        self.mode = FormMode(self.mode)
        if self.mode is FormMode.EDIT and not self.target:
            raise ValueError("edit draft requires a target id")
        if self.mode is FormMode.CREATE and self.target is not None:
            raise ValueError("create draft must not have a target id")

    def set_field(self, name: str, value: Any) -> None:
        if name not in self.fields:
            raise KeyError(f"Unknown form field: {name}")
        self.fields[name] = "" if value is None else str(value)

    def value(self, name: str) -> str:
        return self.fields.get(name, "")


def require_text(draft: FormDraft, name: str, label: str) -> str:
    """Return trimmed field value or raise when it is blank."""
    value = draft.value(name).strip()
    if not value:
        raise ValidationFailure(f"{label} is required")
    return value


def require_selection(draft: FormDraft, name: str, label: str) -> str:
    """Return selected id or raise when nothing (or the ``all`` sentinel) is chosen."""
    value = draft.value(name).strip()
    if not value or value == ALL_CATEGORIES:
        raise ValidationFailure(f"{label} is required")
    return value


def require_positive_number(draft: FormDraft, name: str, label: str) -> float:
    number = parse_number(draft.value(name).strip())
    if number is None or number <= 0:
        raise ValidationFailure(f"{label} must be > 0")
    return number


def category_body(draft: FormDraft) -> dict[str, Any]:
    """Validate a category draft and build its request body."""
    return {"name": require_text(draft, "name", "Name")}


def product_body(draft: FormDraft) -> dict[str, Any]:
    """Validate a product draft and build its request body."""
    category_id = require_selection(draft, "category_id", "Category")
    name = require_text(draft, "name", "Name")
    price = require_positive_number(draft, "price", "Price")
    return {
        "category_id": category_id,
        "name": name,
        "description": draft.value("description"),
        "price": price,
    }
