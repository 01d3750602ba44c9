"""
services/manifest_validator.py — Turns an untrusted decoded JSON value into a
ValidatedManifest or raises ManifestValidationError for the FIRST rule it
breaks.

Check order (the error names the first failure only):
  1. top-level value is an object
  2. schemaVersion == 1
  3. title   — issue.title, else legacy top-level title (trimmed, non-empty)
  4. slug    — issue.slug,  else legacy top-level slug  (trimmed, non-empty)
  5. pages is an array (may be empty)
  6. each page in order: id, alt, image, image.r2Key, optional pageNumber

Pure: no I/O, no Flask, no database. The same input always yields the same
verdict.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from comicyore.errors import ManifestValidationError

SUPPORTED_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class ValidatedManifest:
    title: str
    slug: str
    pages: list[dict] = field(default_factory=list)
    # The original decoded document, cached verbatim.
    document: dict = field(default_factory=dict)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # An int beyond float range is Infinity to a JSON consumer.
        return False


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _resolve_text(document: dict, key: str) -> str | None:
    """issue.<key> first, legacy top-level <key> second; both trimmed."""
    issue = document.get("issue")
    if isinstance(issue, dict):
        candidate = issue.get(key)
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()

    legacy = document.get(key)
    if isinstance(legacy, str) and legacy.strip():
        return legacy.strip()
    return None


def _validate_page(index: int, page: Any) -> None:
    where = f"pages[{index}]"

    if not isinstance(page, dict):
        raise ManifestValidationError(where, f"{where} must be an object.")

    if not _is_non_empty_str(page.get("id")):
        raise ManifestValidationError(f"{where}.id", f"{where}.id must be a non-empty string.")

    if not _is_non_empty_str(page.get("alt")):
        raise ManifestValidationError(f"{where}.alt", f"{where}.alt must be a non-empty string.")

    image = page.get("image")
    if not isinstance(image, dict):
        raise ManifestValidationError(f"{where}.image", f"{where}.image must be an object.")

    if not _is_non_empty_str(image.get("r2Key")):
        raise ManifestValidationError(
            f"{where}.image.r2Key",
            f"{where}.image.r2Key must be a non-empty string.",
        )

    if "pageNumber" in page:
        number = page["pageNumber"]
        if not _is_finite_number(number):
            raise ManifestValidationError(
                f"{where}.pageNumber",
                f"{where}.pageNumber must be a finite number when present.",
            )


def validate_manifest(document: Any) -> ValidatedManifest:
    """
    Validates a decoded manifest document.

    Raises:
      ManifestValidationError(422) — field names the first violated rule,
        e.g. "schemaVersion", "issue.title", "pages[2].image.r2Key".
    """
    if not isinstance(document, dict):
        raise ManifestValidationError("manifest", "Manifest must be a JSON object.")

    version = document.get("schemaVersion")
    if not _is_number(version) or version != SUPPORTED_SCHEMA_VERSION:
        raise ManifestValidationError(
            "schemaVersion",
            f"schemaVersion must be {SUPPORTED_SCHEMA_VERSION}.",
        )

    title = _resolve_text(document, "title")
    if title is None:
        raise ManifestValidationError(
            "issue.title",
            "Manifest must define a non-empty issue.title (or legacy title).",
        )

    slug = _resolve_text(document, "slug")
    if slug is None:
        raise ManifestValidationError(
            "issue.slug",
            "Manifest must define a non-empty issue.slug (or legacy slug).",
        )

    pages = document.get("pages")
    if not isinstance(pages, list):
        raise ManifestValidationError("pages", "pages must be an array.")

    for index, page in enumerate(pages):
        _validate_page(index, page)

    return ValidatedManifest(title=title, slug=slug, pages=pages, document=document)
