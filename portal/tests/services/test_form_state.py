from dataclasses import dataclass

import pytest

from portal.services.errors import FieldKindMismatch, UnknownFieldError
from portal.services.fields import build_descriptors
from portal.services.file_rules import HARD_FILE_SIZE_CAP
from portal.services.form_state import HARD_CAP_ERROR, FormState


@dataclass
class FakeFile:
    name: str
    content_type: str = "application/pdf"
    size: int = 1024


def descriptors():
    return build_descriptors([
        {"name": "title", "label": "Title", "required": True},
        {"name": "description", "type": "textarea"},
        {"name": "year", "type": "select", "options": ["2024-2025", "2025-2026"]},
        {"name": "terms", "type": "checkbox", "required": True},
        {"name": "file", "type": "file", "accept": ".pdf", "max_size": "50MB"},
    ])


def test_seeds_defaults_per_kind_and_ignores_unknown_initial_keys():
    state = FormState(descriptors(), {"title": "Ode", "stray": "x"})

    assert state.values == {
        "title": "Ode",
        "description": "",
        "year": "",
        "terms": False,
        "file": None,
    }
    assert state.errors == {}
    assert state.file_displays == {}


def test_initial_values_are_coerced_and_files_never_prefilled():
    state = FormState(descriptors(), {"terms": "on", "description": None, "file": FakeFile("old.pdf")})

    assert state.values["terms"] is True
    assert state.values["description"] == ""
    assert state.values["file"] is None
    assert state.file_displays == {}


def test_exposed_maps_are_copies():
    state = FormState(descriptors())
    state.values["title"] = "mutated"
    state.errors["title"] = "mutated"
    assert state.values["title"] == ""
    assert state.errors == {}


@pytest.mark.parametrize("raw, expected", [("on", True), ("true", True), (True, True), (None, False), ("", False)])
def test_checkbox_values_are_booleans(raw, expected):
    state = FormState(descriptors())
    state.set_value("terms", raw)
    assert state.values["terms"] is expected


def test_set_value_clears_only_that_fields_error():
    state = FormState(descriptors())
    state.set_errors({"title": "Title is required", "terms": "terms is required"})

    state.set_value("title", "Ode")

    assert state.errors == {"terms": "terms is required"}

    # clearing again is a no-op
    state.set_value("title", "Ode to Joy")
    assert state.errors == {"terms": "terms is required"}


def test_set_value_on_file_field_delegates_to_set_file():
    state = FormState(descriptors())
    state.set_value("file", FakeFile("poem.pdf"))
    assert state.values["file"].name == "poem.pdf"
    assert state.file_displays == {"file": "poem.pdf"}


def test_file_over_hard_cap_is_discarded_even_if_max_size_allows_it():
    state = FormState(descriptors())

    state.set_file("file", FakeFile("huge.pdf", size=HARD_FILE_SIZE_CAP + 1))

    assert state.values["file"] is None
    assert state.file_displays == {}
    assert state.errors == {"file": HARD_CAP_ERROR}


def test_oversized_replacement_keeps_previous_file():
    state = FormState(descriptors())
    state.set_file("file", FakeFile("poem.pdf"))

    state.set_file("file", FakeFile("huge.pdf", size=HARD_FILE_SIZE_CAP + 1))

    assert state.values["file"].name == "poem.pdf"
    assert state.file_displays == {"file": "poem.pdf"}
    assert state.errors == {"file": HARD_CAP_ERROR}


def test_selecting_a_good_file_clears_the_cap_error():
    state = FormState(descriptors())
    state.set_file("file", FakeFile("huge.pdf", size=HARD_FILE_SIZE_CAP + 1))
    state.set_file("file", FakeFile("poem.pdf"))
    assert state.errors == {}
    assert state.file_displays == {"file": "poem.pdf"}


def test_replacing_a_file_replaces_its_display():
    state = FormState(descriptors())
    state.set_file("file", FakeFile("first.pdf"))
    state.set_file("file", FakeFile("second.pdf"))
    assert state.file_displays == {"file": "second.pdf"}


def test_clear_file_leaves_other_fields_untouched():
    state = FormState(descriptors())
    state.set_value("title", "Ode")
    state.set_file("file", FakeFile("poem.pdf"))

    state.clear_file("file")

    assert state.values["file"] is None
    assert state.values["title"] == "Ode"
    assert state.file_displays == {}


def test_set_file_none_clears():
    state = FormState(descriptors())
    state.set_file("file", FakeFile("poem.pdf"))
    state.set_file("file", None)
    assert state.values["file"] is None
    assert "file" not in state.file_displays


def test_set_errors_replaces_whole_map():
    state = FormState(descriptors())
    state.set_errors({"title": "a", "terms": "b"})
    state.set_errors({"year": "c"})
    assert state.errors == {"year": "c"}


def test_unknown_names_are_rejected():
    state = FormState(descriptors())
    with pytest.raises(UnknownFieldError):
        state.set_value("nope", "x")
    with pytest.raises(UnknownFieldError):
        state.set_errors({"nope": "x"})
    with pytest.raises(UnknownFieldError):
        state.clear_file("nope")


def test_set_file_on_a_non_file_field_is_a_kind_mismatch():
    state = FormState(descriptors())
    with pytest.raises(FieldKindMismatch, match="title is a text field"):
        state.set_file("title", FakeFile("poem.pdf"))
    assert state.values["title"] == ""
    assert state.file_displays == {}


def test_reset_restores_initial_snapshot_after_any_mutations():
    initial = {"title": "Draft", "terms": True}
    state = FormState(descriptors(), initial)

    state.set_value("title", "Changed")
    state.set_value("terms", None)
    state.set_value("year", "2025-2026")
    state.set_file("file", FakeFile("poem.pdf"))
    state.set_errors({"description": "bad"})
    state.set_form_error("Something broke")

    state.reset()

    assert state.values == {
        "title": "Draft",
        "description": "",
        "year": "",
        "terms": True,
        "file": None,
    }
    assert state.values == state.initial_values
    assert state.errors == {}
    assert state.file_displays == {}
    assert state.form_error == ""


def test_file_display_tracks_file_value():
    state = FormState(descriptors())
    assert ("file" in state.file_displays) == (state.values["file"] is not None)
    state.set_file("file", FakeFile("poem.pdf"))
    assert ("file" in state.file_displays) == (state.values["file"] is not None)
    state.clear_file("file")
    assert ("file" in state.file_displays) == (state.values["file"] is not None)


def test_snapshot_keeps_file_handles_and_has_values():
    state = FormState(descriptors())
    assert state.has_values() is False

    upload = FakeFile("poem.pdf")
    state.set_file("file", upload)
    snap = state.snapshot()

    assert snap["file"] is upload
    assert state.has_values() is True
