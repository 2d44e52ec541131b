"""Changelog engine: locate, generate, merge and summarize sections."""

from craft.changelog.generate import ChangelogBody, generate_from_history, render_changelog
from craft.changelog.markdown import (
    UNRELEASED_TITLE,
    Changeset,
    find_changeset,
    prepend_changeset,
    remove_changeset,
)
from craft.changelog.prepare import prepare_changelog
from craft.changelog.summarize import summarize_items

__all__ = [
    "UNRELEASED_TITLE",
    "ChangelogBody",
    "Changeset",
    "find_changeset",
    "generate_from_history",
    "prepare_changelog",
    "prepend_changeset",
    "remove_changeset",
    "render_changelog",
    "summarize_items",
]
