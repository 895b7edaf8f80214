from __future__ import annotations

import pytest

from catalog_client.admin.forms import FormDraft, FormMode, category_body, product_body
from catalog_client.api.errors import ValidationFailure


def _product_draft(**fields: str) -> FormDraft:
    base = {"category_id": "cat-1", "name": "Mouse", "description": "", "price": "299000"}
    base.update(fields)
    return FormDraft(mode=FormMode.CREATE, fields=base)


def test_draft_target_required_only_for_edit() -> None:
    with pytest.raises(ValueError):
        FormDraft(mode=FormMode.EDIT, fields={"name": ""})
    with pytest.raises(ValueError):
        FormDraft(mode=FormMode.CREATE, fields={"name": ""}, target="c1")

    draft = FormDraft(mode="edit", fields={"name": "x"}, target="c1")  # type: ignore[arg-type]
    assert draft.mode is FormMode.EDIT


def test_set_field_rejects_unknown_names() -> None:
    draft = FormDraft(mode=FormMode.CREATE, fields={"name": ""})

    draft.set_field("name", "  Audio ")

    assert draft.value("name") == "  Audio "
    with pytest.raises(KeyError):
        draft.set_field("colour", "red")


def test_category_body_trims_name() -> None:
    draft = FormDraft(mode=FormMode.CREATE, fields={"name": "  Audio  "})

    assert category_body(draft) == {"name": "Audio"}


def test_category_body_rejects_blank_name() -> None:
    with pytest.raises(ValidationFailure) as exc:
        category_body(FormDraft(mode=FormMode.CREATE, fields={"name": "   "}))

    assert exc.value.message == "Name is required"


def test_product_body_converts_price() -> None:
    body = product_body(_product_draft(name=" Mouse ", description="  wireless", price="12.5"))

    assert body == {
        "category_id": "cat-1",
        "name": "Mouse",
        "description": "  wireless",
        "price": 12.5,
    }


@pytest.mark.parametrize(
    ("fields", "message"),
    [
        ({"category_id": "all"}, "Category is required"),
        ({"category_id": ""}, "Category is required"),
        ({"name": ""}, "Name is required"),
        ({"price": "0"}, "Price must be > 0"),
        ({"price": "-5"}, "Price must be > 0"),
        ({"price": "abc"}, "Price must be > 0"),
        ({"price": ""}, "Price must be > 0"),
        ({"price": "nan"}, "Price must be > 0"),
        ({"price": "inf"}, "Price must be > 0"),
        ({"price": "1_000"}, "Price must be > 0"),
    ],
)
def test_product_body_validation(fields: dict[str, str], message: str) -> None:
    with pytest.raises(ValidationFailure) as exc:
        product_body(_product_draft(**fields))

    assert exc.value.message == message
