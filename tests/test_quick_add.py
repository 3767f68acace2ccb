"""Tests for the quick-add encoder and create-from-file flow."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from todoist_vault_sync.errors import QuickAddError
from todoist_vault_sync.sync.quick_add import (
    QuickAddOptions,
    encode_quick_add,
    note_url,
    quick_add,
    task_request_from_file,
)


class TestEncodeQuickAdd:
    def test_full_example(self):
        options = QuickAddOptions(
            priority=1, project="Home", due="2024-01-02T15:30:00"
        )
        assert (
            encode_quick_add("Buy milk", "note", options)
            == "Buy milk p1 #Home 2024-01-02 15:30 // note"
        )

    def test_title_only(self):
        assert encode_quick_add("Buy milk", None, QuickAddOptions()) == "Buy milk"

    def test_empty_description_omitted(self):
        assert encode_quick_add("Buy milk", "", QuickAddOptions()) == "Buy milk"

    def test_segment_order(self):
        options = QuickAddOptions(
            due="2024-01-02",
            project="Home",
            priority=2,
            label="errand",
            recurrence="every monday",
        )
        assert (
            encode_quick_add("Shop", "d", options)
            == "Shop p2 #Home @errand every monday starting 2024-01-02 // d"
        )

    def test_recurrence_without_due(self):
        options = QuickAddOptions(recurrence="every day")
        assert encode_quick_add("Walk", None, options) == "Walk every day starting"

    def test_date_object_due(self):
        options = QuickAddOptions(due=date(2024, 1, 2))
        assert encode_quick_add("Pay", None, options) == "Pay 2024-01-02"

    @pytest.mark.parametrize("title", ["", "   ", "two\nlines"])
    def test_bad_titles_rejected(self, title):
        with pytest.raises(QuickAddError):
            encode_quick_add(title, None, QuickAddOptions())

    @pytest.mark.parametrize("priority", [0, 5])
    def test_bad_priority_rejected(self, priority):
        with pytest.raises(QuickAddError, match="priority"):
            encode_quick_add("x", None, QuickAddOptions(priority=priority))

    @pytest.mark.parametrize(
        "field,value",
        [
            ("project", "Big Project"),
            ("project", "#Home"),
            ("label", "two words"),
            ("label", "@errand"),
        ],
    )
    def test_ambiguous_project_or_label_rejected(self, field, value):
        with pytest.raises(QuickAddError, match=field):
            encode_quick_add("x", None, QuickAddOptions(**{field: value}))

    def test_quick_add_error_is_value_error(self):
        assert issubclass(QuickAddError, ValueError)


class TestOptions:
    def test_unknown_keys_ignored(self):
        options = QuickAddOptions.model_validate({"project": "Home", "tags": [1]})
        assert options.project == "Home"

    def test_empty_strings_are_none(self):
        options = QuickAddOptions.model_validate({"project": "", "label": ""})
        assert options.project is None
        assert options.label is None


class TestQuickAdd:
    def test_submits_encoded_text(self):
        client = MagicMock()
        client.quick_add.return_value = {"id": "42"}
        text, created = quick_add(
            client, "Buy milk", None, QuickAddOptions(project="Home")
        )
        client.quick_add.assert_called_once_with(
            "Buy milk #Home", auto_reminder=True
        )
        assert text == "Buy milk #Home"
        assert created == {"id": "42"}

    def test_invalid_input_never_reaches_client(self):
        client = MagicMock()
        with pytest.raises(QuickAddError):
            quick_add(client, "", None, QuickAddOptions())
        client.quick_add.assert_not_called()


class TestFromFile:
    def test_note_url_is_quoted(self):
        assert (
            note_url("My Vault", "Notes/Plan A.md")
            == "obsidian://open?vault=My%20Vault&file=Notes/Plan%20A.md"
        )

    def test_request_from_frontmatter(self, vault):
        note = vault / "Notes" / "Plan trip.md"
        note.parent.mkdir()
        note.write_text(
            "---\n"
            "due: 2024-01-02\n"
            "project: Travel\n"
            "priority: 2\n"
            "description: Book flights\n"
            "---\n"
            "Body text\n"
        )
        title, description, options = task_request_from_file(
            vault, "Notes/Plan trip.md"
        )
        assert title == "Plan trip"
        assert options.project == "Travel"
        assert options.priority == 2
        assert description.startswith("Book flights obsidian://open?vault=vault")
        assert description.endswith("&file=Notes/Plan%20trip.md")
        assert (
            encode_quick_add(title, description, options)
            == f"Plan trip p2 #Travel 2024-01-02 // {description}"
        )

    def test_note_without_frontmatter(self, vault):
        (vault / "Idea.md").write_text("just text")
        title, description, options = task_request_from_file(vault, "Idea.md")
        assert title == "Idea"
        assert description == "obsidian://open?vault=vault&file=Idea.md"
        assert options == QuickAddOptions()

    def test_missing_note(self, vault):
        with pytest.raises(ValueError, match="not found"):
            task_request_from_file(vault, "Nope.md")

    def test_path_outside_vault(self, vault):
        with pytest.raises(ValueError, match="outside the vault"):
            task_request_from_file(vault, "../secret.md")

    def test_explicit_vault_name(self, vault):
        (vault / "Idea.md").write_text("just text")
        _, description, _ = task_request_from_file(vault, "Idea.md", "Second Brain")
        assert description == "obsidian://open?vault=Second%20Brain&file=Idea.md"
