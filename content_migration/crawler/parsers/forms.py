"""Form structure extraction."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from ..types import FormData, FormField
from .classify import form_purpose_for
from .common import as_soup, attr_text, element_text, new_id


NON_DATA_INPUT_TYPES = {"submit", "button", "reset", "image"}
DEFAULT_SUBMIT_TEXT = "Submit"


def _labels_by_id(form: Tag) -> dict[str, str]:
    labels: dict[str, str] = {}
    for label in form.find_all("label"):
        target = attr_text(label, "for")
        text = element_text(label)
        if target and text and target not in labels:
            labels[target] = text
    return labels


def _field_label(element: Tag, labels: dict[str, str]) -> str | None:
    element_id = attr_text(element, "id")
    if element_id and element_id in labels:
        return labels[element_id]

    wrapping = element.find_parent("label")
    if wrapping is not None:
        return element_text(wrapping)
    return attr_text(element, "aria-label")


def _field_type(element: Tag) -> str:
    if element.name == "textarea":
        return "textarea"
    if element.name == "select":
        return "select"
    return (attr_text(element, "type") or "text").lower()


def _select_options(element: Tag) -> list[str]:
    options: list[str] = []
    for option in element.find_all("option"):
        text = element_text(option) or attr_text(option, "value")
        if text:
            options.append(text)
    return options


def _is_required(element: Tag) -> bool:
    if element.has_attr("required"):
        return True
    return (attr_text(element, "aria-required") or "").lower() == "true"


def extract_fields(form: Tag) -> list[FormField]:
    """Data-bearing fields of `form`; `_`-prefixed names are skipped."""

    labels = _labels_by_id(form)
    fields: list[FormField] = []

    for element in form.find_all(["input", "textarea", "select"]):
        name = attr_text(element, "name")
        if not name or name.startswith("_"):
            continue

        field_type = _field_type(element)
        if element.name == "input" and field_type in NON_DATA_INPUT_TYPES:
            continue

        fields.append(
            FormField(
                name=name,
                type=field_type,
                label=_field_label(element, labels),
                placeholder=attr_text(element, "placeholder"),
                required=_is_required(element),
                options=_select_options(element) if element.name == "select" else None,
            )
        )
    return fields


def submit_button_text(form: Tag) -> str:
    for button in form.find_all("button"):
        if (attr_text(button, "type") or "").lower() == "submit":
            text = element_text(button)
            if text:
                return text

    for element in form.find_all("input"):
        if (attr_text(element, "type") or "").lower() == "submit":
            value = attr_text(element, "value")
            if value:
                return value

    # Buttons without a type attribute submit by default.
    for button in form.find_all("button"):
        if not button.has_attr("type"):
            text = element_text(button)
            if text:
                return text

    return DEFAULT_SUBMIT_TEXT


def extract_forms(html: str | BeautifulSoup, *, page_url: str) -> list[FormData]:
    soup = as_soup(html)

    forms: list[FormData] = []
    for form in soup.find_all("form"):
        fields = extract_fields(form)
        if not fields:
            continue

        forms.append(
            FormData(
                id=new_id("form"),
                purpose=form_purpose_for(str(form), (field.name for field in fields)),
                action=attr_text(form, "action"),
                method=(attr_text(form, "method") or "POST").upper(),
                fields=fields,
                submit_button_text=submit_button_text(form),
                parent_page_url=page_url,
            )
        )
    return forms


__all__ = [
    "DEFAULT_SUBMIT_TEXT",
    "extract_fields",
    "extract_forms",
    "submit_button_text",
]
