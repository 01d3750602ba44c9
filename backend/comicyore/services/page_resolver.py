"""
services/page_resolver.py — Finds the page to show for a 1-based page number.

Selection rule:
  1. the first page whose explicit numeric pageNumber equals the request
  2. otherwise the page at array position page_number - 1
  3. otherwise None

So a manifest may number pages explicitly (sparse or reordered) or rely on
array order alone. Navigation therefore walks array positions and asks
page_link() for a number that leads back to each neighbour.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResolvedPage:
    page: dict
    image_key: str
    total_pages: int
    index: int = 0      # array position of `page`


def _pages(manifest: Any) -> list | None:
    pages = manifest.get("pages") if isinstance(manifest, dict) else None
    return pages if isinstance(pages, list) else None


def _explicit_number(page: Any):
    if not isinstance(page, dict):
        return None
    number = page.get("pageNumber")
    if isinstance(number, bool) or not isinstance(number, (int, float)):
        return None
    return number


def resolve_page(manifest: Any, page_number: int) -> ResolvedPage | None:
    """
    Locates `page_number` in a cached manifest document.

    Returns None when the manifest has no pages array or nothing matches.
    """
    pages = _pages(manifest)
    if pages is None:
        return None

    index = next(
        (i for i, p in enumerate(pages) if _explicit_number(p) == page_number),
        None,
    )
    if index is None and 1 <= page_number <= len(pages):
        index = page_number - 1
    if index is None:
        return None

    match = pages[index]
    if not isinstance(match, dict):
        return None

    image = match.get("image")
    image_key = image.get("r2Key") if isinstance(image, dict) else None
    if not isinstance(image_key, str) or not image_key:
        return None

    return ResolvedPage(page=match, image_key=image_key, total_pages=len(pages), index=index)


def page_link(manifest: Any, index: int) -> int | None:
    """
    A page number that resolve_page() maps back to pages[index].

    The page's own integral pageNumber is preferred, then its 1-based
    position. Returns None when neither leads back to it.
    """
    pages = _pages(manifest)
    if pages is None or not 0 <= index < len(pages):
        return None

    candidates = []
    explicit = _explicit_number(pages[index])
    if explicit is not None and (isinstance(explicit, int) or explicit.is_integer()) and explicit >= 1:
        candidates.append(int(explicit))
    candidates.append(index + 1)

    for number in candidates:
        resolved = resolve_page(manifest, number)
        if resolved is not None and resolved.index == index:
            return number
    return None
