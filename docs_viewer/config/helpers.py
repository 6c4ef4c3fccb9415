"""Utility helpers shared by the docs-viewer configuration loader."""

from __future__ import annotations

import typing as typ

from .models import ThemeConfig

DEFAULT_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".json",
    ".css",
    ".md",
    ".sql",
    ".rules",
    ".py",
)
DEFAULT_SKIP_DIRS: tuple[str, ...] = (
    "node_modules",
    ".next",
    "dist",
    "build",
    "drizzle",
    "coverage",
)


def _normalize_list(value: str | list[object] | None) -> list[str]:
    """Normalize a whitespace-separated string or list into non-empty strings."""
    if isinstance(value, str):
        return [segment for segment in value.split() if segment]
    if isinstance(value, list):
        normalized: list[str] = []
        for segment in value:
            text = str(segment).strip()
            if text:
                normalized.append(text)
        return normalized
    return []


def _normalize_extensions(value: str | list[object] | None) -> tuple[str, ...]:
    """Return lower-cased extensions with a leading dot, or the defaults."""
    items = _normalize_list(value)
    if not items:
        return DEFAULT_EXTENSIONS
    return tuple(item.lower() if item.startswith(".") else f".{item.lower()}" for item in items)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _build_raw_url(repo: str, ref: str, path: str) -> str:
    """Build the raw GitHub URL for a file at the given ref and path."""
    normalized = path.lstrip("/")
    ref_segment = ref if ref.startswith("refs/") else f"refs/heads/{ref}"
    return f"https://raw.githubusercontent.com/{repo}/{ref_segment}/{normalized}"


def _merge_theme(
    base: ThemeConfig, override: typ.Mapping[str, typ.Any] | None
) -> ThemeConfig:
    """Merge an override theme mapping into the base ThemeConfig."""
    if not override:
        return base
    return ThemeConfig(
        site_name=override.get("site_name", base.site_name),
        tagline=override.get("tagline", base.tagline),
        doc_label=override.get("doc_label", base.doc_label),
        code_label=override.get("code_label", base.code_label),
    )


def _build_theme_config(payload: typ.Mapping[str, typ.Any]) -> ThemeConfig:
    """Build a ThemeConfig instance from the provided mapping payload."""
    return _merge_theme(ThemeConfig(), payload)


__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_SKIP_DIRS",
    "_build_raw_url",
    "_build_theme_config",
    "_merge_theme",
    "_normalize_extensions",
    "_normalize_list",
    "_optional_str",
]
