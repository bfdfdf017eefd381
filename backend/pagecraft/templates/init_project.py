from pagecraft.vfs.types import FileType

DEFAULT_FILES = [
    {
        "name": "Home",
        "type": FileType.PAGE,
        "is_home": True,
        "schema": {
            "title": "Home",
            "meta": {"title": "My Project", "description": ""},
        },
    },
    {
        "name": "Theme",
        "type": FileType.TOKENS,
        "schema": {
            "colors": {"primary": "#2563eb", "background": "#ffffff", "text": "#111827"},
            "fonts": {"body": "Inter, sans-serif", "heading": "Inter, sans-serif"},
            "radius": {"sm": "0.25rem", "md": "0.5rem", "lg": "1rem"},
        },
    },
    {
        "name": "Site",
        "type": FileType.CONFIG,
        "schema": {
            "language": "en",
            "favicon": "",
            "routing": {"trailing_slash": False},
        },
    },
]

# Blocks seeded into the home page, in order
DEFAULT_HOME_BLOCKS = [
    {
        "type": "section",
        "props": {"tag": "header"},
        "styles": {"base": ["flex", "flex-col", "items-center", "gap-4", "py-16"]},
        "children": [
            {
                "type": "heading",
                "props": {"text": "Project Ready", "level": 1},
                "styles": {"base": ["text-4xl", "font-bold"]},
            },
            {
                "type": "text",
                "props": {"text": "Drag blocks onto the canvas to build your page."},
                "styles": {"base": ["text-gray-600"]},
            },
        ],
    },
]
