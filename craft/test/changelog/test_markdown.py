"""Tests for craft.changelog.markdown module."""

from __future__ import annotations

from craft.changelog.markdown import (
    DEFAULT_CHANGESET_BODY,
    Changeset,
    find_changeset,
    list_changesets,
    prepend_changeset,
    remove_changeset,
)

ATX = "# Changelog\n\n## Unreleased\n\n- new thing\n\n## 1.0.0\n\n- first\n"
SETEXT = "Changelog\n=========\n\n2.0.0\n-----\n\n- b\n\n1.0.0\n-----\n\n- a\n"


class TestFindChangeset:
    def test_atx_section(self) -> None:
        assert find_changeset(ATX, "1.0.0") == Changeset(name="1.0.0", body="- first")

    def test_body_stops_at_next_heading(self) -> None:
        assert find_changeset(ATX, "Unreleased") == Changeset(name="Unreleased", body="- new thing")

    def test_unreleased_is_case_insensitive(self) -> None:
        found = find_changeset(ATX, "unreleased")
        assert found is not None
        assert found.is_unreleased is True

    def test_setext_section(self) -> None:
        assert find_changeset(SETEXT, "2.0.0") == Changeset(name="2.0.0", body="- b")

    def test_heading_with_v_and_date(self) -> None:
        text = "## v1.2.0 (2024-01-01)\n\n- x\n"
        found = find_changeset(text, "1.2.0")
        assert found is not None
        assert found.name == "v1.2.0 (2024-01-01)"

    def test_missing(self) -> None:
        assert find_changeset(ATX, "9.9.9") is None

    def test_fuzzy_falls_back_to_unreleased(self) -> None:
        found = find_changeset(ATX, "2.0.0", fuzzy=True)
        assert found is not None
        assert found.name == "Unreleased"

    def test_subsections_are_not_releases(self) -> None:
        text = "## 1.0.0\n\n### Bug Fixes\n\n- x\n"
        assert [c.name for c in list_changesets(text)] == ["1.0.0"]
        assert find_changeset(text, "1.0.0") == Changeset(name="1.0.0", body="### Bug Fixes\n\n- x")


class TestRemoveChangeset:
    def test_removes_only_the_named_section(self) -> None:
        assert remove_changeset(ATX, "Unreleased") == "# Changelog\n\n## 1.0.0\n\n- first\n"

    def test_setext(self) -> None:
        expected = "Changelog\n=========\n\n1.0.0\n-----\n\n- a\n"
        assert remove_changeset(SETEXT, "2.0.0") == expected

    def test_missing_section_is_noop(self) -> None:
        assert remove_changeset(ATX, "9.9.9") == ATX


class TestPrependChangeset:
    def test_atx(self) -> None:
        text = "# Changelog\n\n## 1.0.0\n\n- first\n"
        result = prepend_changeset(text, Changeset(name="1.1.0", body="- second"))
        assert result == "# Changelog\n\n## 1.1.0\n\n- second\n\n## 1.0.0\n\n- first\n"

    def test_copies_setext_style(self) -> None:
        result = prepend_changeset(SETEXT, Changeset(name="3.0.0", body="- c"))
        assert result == (
            "Changelog\n=========\n\n"
            "3.0.0\n-----\n\n- c\n\n"
            "2.0.0\n-----\n\n- b\n\n"
            "1.0.0\n-----\n\n- a\n"
        )

    def test_document_without_sections(self) -> None:
        result = prepend_changeset("# Changelog\n", Changeset(name="1.0.0", body="- x"))
        assert result == "# Changelog\n\n## 1.0.0\n\n- x\n"

    def test_empty_document(self) -> None:
        assert prepend_changeset("", Changeset(name="1.0.0", body="- x")) == "## 1.0.0\n\n- x\n"

    def test_empty_body_gets_placeholder(self) -> None:
        result = prepend_changeset("", Changeset(name="1.0.0", body="  "))
        assert result == f"## 1.0.0\n\n{DEFAULT_CHANGESET_BODY}\n"


class TestReplaceSection:
    def test_atx_other_sections_untouched(self) -> None:
        text = "# Changelog\n\n## 2.0.0\n\n- c\n\n## 1.1.0\n\n- b\n\n## 1.0.0\n\n- a\n"

        removed = remove_changeset(text, "1.1.0")
        result = prepend_changeset(removed, Changeset(name="1.1.0", body="- b, reworded"))

        assert result == (
            "# Changelog\n\n## 1.1.0\n\n- b, reworded\n\n## 2.0.0\n\n- c\n\n## 1.0.0\n\n- a\n"
        )
        assert result.endswith(removed[removed.index("## 2.0.0") :])
        for name in ("2.0.0", "1.0.0"):
            assert find_changeset(result, name) == find_changeset(text, name)

    def test_setext_other_sections_untouched(self) -> None:
        text = (
            "Changelog\n=========\n\n"
            "2.0.0\n-----\n\n- c\n\n"
            "1.1.0\n-----\n\n- b\n\n"
            "1.0.0\n-----\n\n- a\n"
        )

        removed = remove_changeset(text, "1.1.0")
        result = prepend_changeset(removed, Changeset(name="1.1.0", body="- b"))

        assert result == (
            "Changelog\n=========\n\n"
            "1.1.0\n-----\n\n- b\n\n"
            "2.0.0\n-----\n\n- c\n\n"
            "1.0.0\n-----\n\n- a\n"
        )
        assert result.endswith(removed[removed.index("2.0.0") :])
        for name in ("2.0.0", "1.0.0"):
            assert find_changeset(result, name) == find_changeset(text, name)
