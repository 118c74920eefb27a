"""
Generation Prompts
System prompts and per-call prompt builders for the planner and renderer.
"""

from collections.abc import Iterable

from models.domain import Frame, ScreenSpec

from .themes import BASE_VARIABLES, theme_options


# ============================================================================
# System Prompts
# ============================================================================

ANALYSIS_PROMPT = f"""
You are a lead mobile UI/UX designer planning the screens of an app.

Return ONLY a JSON object, no markdown and no commentary:
{{
  "theme": "<theme id from the list below>",
  "screens": [
    {{
      "id": "kebab-case-id",
      "name": "Display Name",
      "purpose": "One sentence on what the screen does for the user",
      "visualDescription": "Dense visual directive"
    }}
  ]
}}

RULES:
- Return 1 screen if the user asks for one, otherwise 1-4 screens.
- A new app starts with a welcome/onboarding screen.
- visualDescription reads like an image-generation prompt: root container
  strategy, every layout section (header, hero, charts, cards, nav), concrete
  sample data ("8,432 steps", "$12.99"), chart types, lucide icon names.
- Components shared across screens (bottom navigation, headers, buttons) are
  described identically on every screen that uses them, including which nav
  icon is active.
- No bottom navigation on splash, onboarding or auth screens.
- When existing screens are provided, reuse their navigation, layout and
  design system exactly.

AVAILABLE THEMES:
{theme_options()}

AVAILABLE FONTS & VARIABLES:
{BASE_VARIABLES}
""".strip()


GENERATION_SYSTEM_PROMPT = """
You are an elite mobile UI designer producing a single app screen as HTML
styled with Tailwind CSS and theme CSS variables.

OUTPUT:
- Raw HTML only. Start with <div and end with its closing tag.
- No markdown, no comments, no <html>/<head>/<body>, no scripts, no canvas.
- Everything lives inside one root <div> that controls the layout.

STYLE:
- Colors come from theme variables: bg-[var(--background)],
  text-[var(--foreground)], bg-[var(--card)], border-[var(--border)].
  The variables are already defined by the host page; never redeclare them.
- Modern, polished look: generous rounding, layered cards, soft shadows,
  glassmorphic sticky headers and floating bottom navigation where needed.
- Charts are inline SVG only.
- Icons: <iconify-icon icon="lucide:NAME"></iconify-icon>.
- Realistic sample data, never generic placeholders.

IMAGES:
- Avatars: https://i.pravatar.cc/150?u=NAME
- Any other image: call the searchUnsplash tool and use the URL it returns.
  If it returns an empty string, leave the image out.

LAYOUT:
- Root: relative w-full min-h-screen bg-[var(--background)], no overflow
  classes on the root.
- Scrollable areas are inner containers with hidden scrollbars:
  [&::-webkit-scrollbar]:hidden scrollbar-none
- Height grows with content so the screen renders fully inside an iframe.

The user's visual directive always takes precedence over these defaults.
""".strip()


# ============================================================================
# Consistency Blocks
# ============================================================================

_CONSISTENCY_RULES = """
- The screen MUST match the existing screens exactly in style.
- Reuse the same fonts, sizes, weights and color palette.
- Copy the existing bottom navigation and header structure verbatim if present.
- Copy shared components (cards, buttons, inputs) with identical styling.
- Keep the same spacing, radius, shadows and visual hierarchy.
- Do not introduce design patterns absent from the existing screens.
""".strip()

_FIRST_SCREEN_RULES = "- This is the first screen: establish the design system the others will follow."


# ============================================================================
# Builders
# ============================================================================

def format_frames_context(frames: Iterable[Frame]) -> str:
    """Serialize frames as ``<!-- title -->`` + markup, in order."""
    return "\n\n".join(f"<!-- {f.title} -->\n{f.html_content}" for f in frames)


def build_planning_prompt(prompt: str, context: str = "", existing_theme: str | None = None) -> str:
    """
    Build the planner's user message.

    With context (a continuation), the planner is told to keep the stored
    theme and the existing navigation/structure. Without, the request stands
    alone.
    """
    if not context:
        return f"USER REQUEST: {prompt}"

    theme_line = existing_theme or "(keep the theme used by the existing screens)"
    return "\n\n".join(
        [
            f"USER REQUEST: {prompt}",
            f"SELECTED THEME: {theme_line}",
            f"EXISTING SCREENS (analyze for navigation, layout and design system):\n{context}",
            "REQUIREMENTS:\n"
            f"- Use exactly the theme: {theme_line}\n"
            "- Reuse the existing bottom navigation structure and styling.\n"
            "- Reuse the existing components, spacing, fonts and colors.\n"
            "- New screens must blend seamlessly with the existing ones.",
        ]
    )


def build_screen_prompt(
    screen: ScreenSpec,
    index: int,
    total: int,
    context: str,
    theme_style: str,
) -> str:
    """Build the renderer's user message for screen ``index`` (0-based) of ``total``."""
    rules = _CONSISTENCY_RULES if context else _FIRST_SCREEN_RULES
    return "\n\n".join(
        [
            f"- Screen {index + 1}/{total}\n"
            f"- Screen ID: {screen.id}\n"
            f"- Screen Name: {screen.name}\n"
            f"- Screen Purpose: {screen.purpose}",
            f"VISUAL DESCRIPTION: {screen.visual_description}",
            f"EXISTING SCREENS REFERENCE (extract and reuse their components):\n{context or 'No previous screens'}",
            f"THEME VARIABLES (reference only, already defined by the host):\n{theme_style}",
            f"REQUIREMENTS:\n{rules}",
            "Generate the complete HTML for this screen now.",
        ]
    )


def build_regeneration_prompt(
    frame: Frame,
    prompt: str,
    context: str,
    theme_style: str,
) -> str:
    """Build the renderer's user message for regenerating one frame in place."""
    rules = _CONSISTENCY_RULES if context else "- Keep the design system of the original screen."
    return "\n\n".join(
        [
            f"REGENERATE THIS SCREEN:\n- Screen Name: {frame.title}\n- User Request: {prompt}",
            f"ORIGINAL HTML (for reference):\n{frame.html_content}",
            f"EXISTING SCREENS REFERENCE (maintain consistency with these):\n{context or 'No other screens'}",
            f"THEME VARIABLES (reference only, already defined by the host):\n{theme_style}",
            f"REQUIREMENTS:\n{rules}",
            "Generate the complete HTML for this screen now.",
        ]
    )
