"""
Markdown rendering of the starred repositories list using Jinja2 templates.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from core.entities import LanguageGroups
from core.grouping import ordered_languages

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

AVAILABLE_FORMATS = ("list", "table")

TITLE = "Awesome Stars"
CONTENTS_HEADING = "Contents"


@dataclass
class RenderOptions:
    """Display flags for the rendered list."""
    output_format: str = "list"
    with_toc: bool = True
    with_license: bool = True
    with_stars: bool = True
    with_back_to_top: bool = False


@dataclass
class Section:
    """One language heading and its repositories."""
    language: str
    anchor: str
    stars: list


def slugify(heading: str) -> str:
    """GitHub style heading anchor: lower case, punctuation dropped, spaces to dashes."""
    slug = re.sub(r"[^\w\- ]", "", heading.strip().lower())
    return slug.replace(" ", "-")


class AnchorRegistry:
    """Hands out unique anchors the way GitHub does (foo, foo-1, foo-2...)."""

    def __init__(self, *reserved: str):
        self._seen: dict[str, int] = {}
        for heading in reserved:
            self.anchor(heading)

    def anchor(self, heading: str) -> str:
        slug = slugify(heading)
        count = self._seen.get(slug, 0)
        self._seen[slug] = count + 1
        return slug if count == 0 else f"{slug}-{count}"


def one_line(text: str) -> str:
    return " ".join((text or "").split())


def escape_cell(text: str) -> str:
    return one_line(text).replace("|", "\\|")


class ListRenderer:
    """
    Renders language groups into Markdown.
    Each output format is a template named <format>.md.j2.
    """

    def __init__(self, options: Optional[RenderOptions] = None, template_dir: Path = TEMPLATE_DIR):
        self.options = options or RenderOptions()
        if self.options.output_format not in AVAILABLE_FORMATS:
            raise ValueError(
                f"Unknown output format '{self.options.output_format}'. "
                f"Available formats: {', '.join(AVAILABLE_FORMATS)}"
            )

        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["one_line"] = one_line
        self.env.filters["escape_cell"] = escape_cell
        self.template = self.env.get_template(f"{self.options.output_format}.md.j2")

    def sections(self, groups: LanguageGroups) -> list[Section]:
        anchors = AnchorRegistry(TITLE, CONTENTS_HEADING)
        return [
            Section(language=language, anchor=anchors.anchor(language), stars=groups[language])
            for language in ordered_languages(groups)
        ]

    def render(self, groups: LanguageGroups, total: int) -> str:
        """
        Render the list.

        Args:
            groups: Language -> sorted repositories
            total: Number of repositories in the list

        Returns:
            Markdown text
        """
        options = self.options
        top_anchor = slugify(CONTENTS_HEADING) if options.with_toc else slugify(TITLE)
        return self.template.render(
            title=TITLE,
            contents_heading=CONTENTS_HEADING,
            sections=self.sections(groups),
            total=total,
            with_toc=options.with_toc,
            with_license=options.with_license,
            with_stars=options.with_stars,
            with_back_to_top=options.with_back_to_top,
            top_anchor=top_anchor,
        )

    def write_list(self, output_path: str, groups: LanguageGroups, total: int):
        """
        Render the list and write it to a file.

        Args:
            output_path: Path to the output file
            groups: Language -> sorted repositories
            total: Number of repositories in the list
        """
        content = self.render(groups, total)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(content)
        logger.info(f"Wrote {total} repositories to {output_path}")
