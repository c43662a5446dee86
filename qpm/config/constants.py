"""Fixed tables shared by the document store, schema resolver and panels."""

from __future__ import annotations

from typing import Any

ZONES: tuple[str, ...] = ("header", "left", "beforeBody", "afterBody", "right", "footer")
CENTER_ZONES: tuple[str, ...] = ("header", "beforeBody", "afterBody", "footer")

# Column layout of the zone grid: left | center stack | right
ZONE_COLUMNS: tuple[tuple[str, ...], ...] = (("left",), CENTER_ZONES, ("right",))

DISPLAY_MODES: tuple[str, ...] = ("all", "desktop-only", "mobile-only")
CONDITION_HINT = "not-index, has-tags, has-backlinks, has-toc"

GROUP_DIRECTIONS: tuple[str, ...] = ("row", "column")
DEFAULT_GROUP: dict[str, str] = {"direction": "row", "gap": "0.5rem"}

DEFAULT_ORDER = 50
DEFAULT_PRIORITY = 50
DEFAULT_POSITION = "left"
DEFAULT_DISPLAY = "all"
DEFAULT_PAGE_TYPE = "default"
UNKNOWN_CATEGORY = "unknown"

SORT_MODES: tuple[str, ...] = ("config", "alpha", "order")

GLOBAL_BOOLEAN_PATHS: frozenset[str] = frozenset(
    {"enableSPA", "enablePopovers", "theme.cdnCaching"}
)
GLOBAL_ENUM_PATHS: dict[str, tuple[str, ...]] = {
    "theme.fontOrigin": ("googleFonts", "local"),
    "defaultDateType": ("created", "modified", "published"),
}
GLOBAL_STRING_ARRAY_PATHS: frozenset[str] = frozenset({"ignorePatterns"})
COLOR_PATH_PATTERN = r"^theme\.colors\.(lightMode|darkMode)\."

YAML_SCHEMA_HEADER = (
    "# yaml-language-server: $schema=./quartz/plugins/quartz-plugins.schema.json\n"
)

BASELINE_CONFIGURATION: dict[str, Any] = {
    "pageTitle": "Quartz",
    "enableSPA": True,
    "enablePopovers": True,
    "analytics": {"provider": "plausible"},
    "locale": "en-US",
    "baseUrl": "quartz.jzhao.xyz",
    "ignorePatterns": ["private", "templates", ".obsidian"],
    "defaultDateType": "created",
    "theme": {
        "cdnCaching": True,
        "typography": {
            "header": "Schibsted Grotesk",
            "body": "Source Sans Pro",
            "code": "IBM Plex Mono",
        },
        "colors": {
            "lightMode": {
                "light": "#faf8f8",
                "lightgray": "#e5e5e5",
                "gray": "#b8b8b8",
                "darkgray": "#4e4e4e",
                "dark": "#2b2b2b",
                "secondary": "#284b63",
                "tertiary": "#84a59d",
                "highlight": "rgba(143, 159, 169, 0.15)",
                "textHighlight": "#fff23688",
            },
            "darkMode": {
                "light": "#161618",
                "lightgray": "#393639",
                "gray": "#646464",
                "darkgray": "#d4d4d4",
                "dark": "#ebebec",
                "secondary": "#7b97aa",
                "tertiary": "#84a59d",
                "highlight": "rgba(143, 159, 169, 0.15)",
                "textHighlight": "#fff23688",
            },
        },
    },
}
