"""
Theme Catalog
CSS variable sets the planner chooses from and the renderer styles against.
"""

from dataclasses import dataclass

from core import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Theme:
    """A named set of CSS custom properties."""

    id: str
    name: str
    style: str


# Shared by every theme: fonts, radius and chart slots.
BASE_VARIABLES = """
:root {
  --font-sans: 'Plus Jakarta Sans', 'Inter', system-ui, sans-serif;
  --font-heading: 'Outfit', 'Plus Jakarta Sans', sans-serif;
  --font-mono: 'JetBrains Mono', ui-monospace, monospace;
  --radius: 1rem;
  --chart-1: var(--primary);
  --chart-2: var(--accent);
  --chart-3: #f59e0b;
  --chart-4: #8b5cf6;
  --chart-5: #10b981;
}
""".strip()


THEME_LIST: tuple[Theme, ...] = (
    Theme(
        id="midnight",
        name="Midnight",
        style="""
:root {
  --background: #0b0d17; --foreground: #f4f5fb;
  --card: #151829; --card-foreground: #f4f5fb;
  --primary: #6d7cff; --primary-foreground: #ffffff;
  --accent: #22d3ee; --muted: #23263a; --muted-foreground: #8b90a8;
  --border: #2a2e45; --ring: #6d7cff;
}
""".strip(),
    ),
    Theme(
        id="ocean-breeze",
        name="Ocean Breeze",
        style="""
:root {
  --background: #f3f9fc; --foreground: #0c2a3a;
  --card: #ffffff; --card-foreground: #0c2a3a;
  --primary: #0ea5e9; --primary-foreground: #ffffff;
  --accent: #14b8a6; --muted: #e0f0f7; --muted-foreground: #5b7a8a;
  --border: #d2e6ef; --ring: #0ea5e9;
}
""".strip(),
    ),
    Theme(
        id="neo-brutalism",
        name="Neo Brutalism",
        style="""
:root {
  --background: #fffbe8; --foreground: #111111;
  --card: #ffffff; --card-foreground: #111111;
  --primary: #ff5c39; --primary-foreground: #111111;
  --accent: #2f6bff; --muted: #f1ecd2; --muted-foreground: #4a4a4a;
  --border: #111111; --ring: #111111;
  --radius: 0.25rem;
}
""".strip(),
    ),
    Theme(
        id="forest",
        name="Forest",
        style="""
:root {
  --background: #0f1a14; --foreground: #e8f3ec;
  --card: #18261e; --card-foreground: #e8f3ec;
  --primary: #34d399; --primary-foreground: #06140d;
  --accent: #a3e635; --muted: #1f3128; --muted-foreground: #8fae9c;
  --border: #274034; --ring: #34d399;
}
""".strip(),
    ),
    Theme(
        id="sunset",
        name="Sunset",
        style="""
:root {
  --background: #fff7f2; --foreground: #2b1a12;
  --card: #ffffff; --card-foreground: #2b1a12;
  --primary: #f97316; --primary-foreground: #ffffff;
  --accent: #ec4899; --muted: #fde9dc; --muted-foreground: #8a6a5a;
  --border: #f6d8c6; --ring: #f97316;
}
""".strip(),
    ),
)

_BY_ID = {theme.id: theme for theme in THEME_LIST}


def find_theme(theme_id: str | None) -> Theme | None:
    """Look up a theme by id."""
    if not theme_id:
        return None
    return _BY_ID.get(theme_id)


def theme_css(theme_id: str | None) -> str:
    """
    Style text handed to the renderer: base variables plus the theme's own.

    Unknown ids yield the base variables only.
    """
    theme = find_theme(theme_id)
    if theme is None:
        if theme_id:
            logger.warning("unknown_theme", theme=theme_id)
        return BASE_VARIABLES
    return f"{BASE_VARIABLES}\n{theme.style}"


def theme_options() -> str:
    """Theme catalog as a bullet list for the planning prompt."""
    return "\n".join(f"- {t.id} ({t.name})" for t in THEME_LIST)
