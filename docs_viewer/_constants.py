"""Common literal values used across docs_viewer.

These constants keep output filenames and file-type tables centralized so
templates, generators, and tests can import the same values without drifting.
Intended for internal use within the docs_viewer package.

Examples
--------
>>> from docs_viewer import _constants
>>> _constants.PROJECT_META_TEMPLATE.format(key="nextjs-firebase")
'.docs-viewer-nextjs-firebase-meta.json'
>>> _constants.EXTENSION_SYNTAX[".tsx"]
'tsx'
"""

PROJECT_META_TEMPLATE = ".docs-viewer-{key}-meta.json"
SIDECAR_SUFFIX = ".sync.json"

EXTENSION_SYNTAX: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".json": "json",
    ".css": "css",
    ".md": "markdown",
    ".html": "html",
    ".sql": "sql",
    ".rules": "rules",
    ".py": "python",
    ".sh": "shell",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
}

# Firebase security rules highlight as JavaScript.
PYGMENTS_LEXERS: dict[str, str] = {
    "typescript": "typescript",
    "tsx": "tsx",
    "javascript": "javascript",
    "jsx": "jsx",
    "json": "json",
    "css": "css",
    "markdown": "markdown",
    "html": "html",
    "sql": "sql",
    "rules": "javascript",
    "python": "python",
    "shell": "bash",
    "yaml": "yaml",
    "toml": "toml",
}
