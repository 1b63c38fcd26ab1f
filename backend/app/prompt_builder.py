# backend/app/prompt_builder.py

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

log = logging.getLogger("vizora")

DEFAULT_BASE_PROMPT = "Create a YouTube thumbnail"
DEFAULT_ASPECT_RATIO = "16:9"

# Canonical output size per aspect ratio. Client-side croppers use the same table.
ASPECT_RATIO_DIMENSIONS: Mapping[str, Tuple[int, int]] = MappingProxyType(
    {
        "16:9": (1280, 720),
        "1:1": (1080, 1080),
        "4:3": (1440, 1080),
        "9:16": (1080, 1920),
        "21:9": (1920, 823),
    }
)

CATEGORY_CLAUSES: Mapping[str, str] = MappingProxyType(
    {
        "entertainment": "entertainment content",
        "food": "food and cooking",
        "gaming": "gaming content",
        "tech": "technology and gadgets",
        "education": "educational content",
        "travel": "travel and adventure",
        "music": "music and audio",
        "fitness": "fitness and health",
        "product-review": "product review",
        "news": "news and current events",
        "motivation": "motivational content",
    }
)

STYLE_CLAUSES: Mapping[str, str] = MappingProxyType(
    {
        "bold-text-face": "with bold text overlays and prominent facial expressions",
        "minimalist": "with minimalist design and clean layout",
        "cinematic": "with cinematic lighting and dramatic composition",
        "cartoonish": "with cartoonish, fun style",
        "corporate": "with professional, corporate aesthetic",
        "clickbait": "with shocking, clickbait elements",
    }
)

COLOR_SCHEME_CLAUSES: Mapping[str, str] = MappingProxyType(
    {
        "bright-vibrant": "using bright, vibrant colors",
        "dark-contrast": "using dark colors with high contrast",
        "pastel": "using soft, pastel colors",
        "brand-colors": "using brand-appropriate colors",
    }
)

TEXT_OPTION_CLAUSES: Mapping[str, str] = MappingProxyType(
    {
        "auto-generate": "with short, catchy auto-generated headline text",
        "no-text": "without any text overlay",
        "highlighted-keywords": "with a few highlighted keywords in bold text",
        "emoji-style": "with emoji-style text and playful icons",
    }
)

FOCUS_CLAUSES: Mapping[str, str] = MappingProxyType(
    {
        "face-focused": "focused on a large, expressive face",
        "object-focused": "focused on the main object as the hero of the frame",
        "split-screen": "laid out as a split-screen comparison",
        "collage": "arranged as a dynamic collage of key moments",
    }
)


class TemplateLibrary:
    """
    Read-only lookup of canned template descriptions keyed by template id.

    Loaded once per process from a directory of ``<template_id>.txt`` files
    and handed to whoever builds prompts.
    """

    def __init__(self, templates: Mapping[str, str], source: Optional[Path] = None):
        self._templates = MappingProxyType(dict(templates))
        self.source = source

    @classmethod
    def load(cls, directory: Path) -> "TemplateLibrary":
        directory = Path(directory)
        templates: Dict[str, str] = {}
        if not directory.is_dir():
            log.warning(f"⚠️ Template directory {directory} not found; no templates loaded")
            return cls(templates, source=directory)

        for path in sorted(directory.glob("*.txt")):
            text = " ".join(path.read_text(encoding="utf-8").split())
            if text:
                templates[path.stem] = text

        log.info(f"📚 Loaded {len(templates)} prompt templates from {directory}")
        return cls(templates, source=directory)

    def get(self, template_id: Optional[str]) -> Optional[str]:
        if not template_id:
            return None
        return self._templates.get(template_id)

    def ids(self) -> List[str]:
        return sorted(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)


def resolve_aspect_ratio(aspect_ratio: Optional[str]) -> Tuple[str, int, int]:
    """Return (ratio, width, height); unknown ratios fall back to 16:9."""
    if aspect_ratio in ASPECT_RATIO_DIMENSIONS:
        width, height = ASPECT_RATIO_DIMENSIONS[aspect_ratio]
        return aspect_ratio, width, height
    if aspect_ratio:
        log.warning(f"⚠️ Unknown aspect ratio {aspect_ratio!r}, using {DEFAULT_ASPECT_RATIO}")
    width, height = ASPECT_RATIO_DIMENSIONS[DEFAULT_ASPECT_RATIO]
    return DEFAULT_ASPECT_RATIO, width, height


def aspect_ratio_clause(aspect_ratio: Optional[str]) -> str:
    ratio, width, height = resolve_aspect_ratio(aspect_ratio)
    return (
        f"Create this as a YouTube thumbnail with {ratio} aspect ratio "
        f"({width}x{height} pixels). Make it engaging and click-worthy with "
        "high contrast and clear visual hierarchy."
    )


def _template_base(template_text: str, prompt: Optional[str]) -> str:
    base = template_text.rstrip(". ")
    extra = (prompt or "").strip()
    if extra:
        base += f". Additional direction: {extra.rstrip('. ')}"
    return base


def _custom_base(
    prompt: Optional[str],
    category: Optional[str],
    style: Optional[str],
    text_option: Optional[str],
    focus: Optional[str],
    color_scheme: Optional[str],
) -> str:
    base = (prompt or "").strip().rstrip(".") or DEFAULT_BASE_PROMPT

    if category:
        base += f" for {CATEGORY_CLAUSES.get(category, category)}"

    for value, table in (
        (style, STYLE_CLAUSES),
        (color_scheme, COLOR_SCHEME_CLAUSES),
        (text_option, TEXT_OPTION_CLAUSES),
        (focus, FOCUS_CLAUSES),
    ):
        clause = table.get(value) if value else None
        if clause:
            base += f", {clause}"
        elif value:
            log.debug(f"Ignoring unknown option value {value!r}")

    return base


def build_final_prompt(
    templates: TemplateLibrary,
    prompt: Optional[str] = None,
    category: Optional[str] = None,
    style: Optional[str] = None,
    text_option: Optional[str] = None,
    focus: Optional[str] = None,
    color_scheme: Optional[str] = None,
    selected_template: Optional[str] = None,
    aspect_ratio: Optional[str] = DEFAULT_ASPECT_RATIO,
) -> str:
    """
    Turn the user's selections into one instruction string for the image model.

    A known template replaces the discrete options; the free-text prompt is
    kept as extra direction. The aspect-ratio clause is always appended.
    """
    template_text = templates.get(selected_template)
    if selected_template and template_text is None:
        log.warning(f"⚠️ Unknown template {selected_template!r}, building a custom prompt")

    if template_text is not None:
        base = _template_base(template_text, prompt)
    else:
        base = _custom_base(prompt, category, style, text_option, focus, color_scheme)

    return f"{base}. {aspect_ratio_clause(aspect_ratio)}"
