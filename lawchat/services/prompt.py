# =============================================================================
# System Prompt Loader — Versioned XML Template
# =============================================================================
#
# The chat model is steered by a structured template kept in XML so that
# legal reviewers can edit it without touching code:
#
#   <prompt version="1.2" jurisdiction="SE">
#     <persona>...</persona>
#     <tone>...</tone>
#     <disclaimers>...</disclaimers>
#     <rules><rule>...</rule><rule>...</rule></rules>
#     <outputFormat>...</outputFormat>
#   </prompt>
#
# The template is rendered into one system prompt string. It is read once
# per process; call get_system_prompt.cache_clear() after editing the file.
# =============================================================================

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from lawchat.config import settings

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_PATH = Path(__file__).resolve().parent.parent / "prompts" / "system_prompt.xml"


class PromptTemplateError(Exception):
    """The prompt template is missing or does not have the expected shape."""


@dataclass
class PromptTemplate:
    """Parsed contents of a system prompt template."""

    version: str
    jurisdiction: str
    persona: str
    tone: str
    disclaimers: str
    rules: list[str] = field(default_factory=list)
    output_format: str = ""

    def render(self) -> str:
        """Merge the template fields into a single system prompt."""
        rules = "\n".join(self.rules)
        prompt = (
            f"Version {self.version}, Jurisdiction: {self.jurisdiction}\n"
            f"Persona: {self.persona}\n"
            f"Tone: {self.tone}\n"
            f"Disclaimers: {self.disclaimers}\n"
            f"\n"
            f"Rules:\n"
            f"{rules}\n"
            f"\n"
            f"Response Format:\n"
            f"{self.output_format}\n"
        )
        return prompt.strip()


def _flatten(element: ET.Element) -> str:
    # Indented multi-line XML text collapses to single spaces.
    return " ".join("".join(element.itertext()).split())


def _text(root: ET.Element, tag: str) -> str:
    element = root.find(tag)
    if element is None:
        raise PromptTemplateError(f"Prompt template is missing <{tag}>")
    return _flatten(element)


def parse_prompt_template(xml: str) -> PromptTemplate:
    """
    Parse template XML into a PromptTemplate.

    Raises:
        PromptTemplateError: Malformed XML, wrong root element, or a
            required child element is missing.
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        raise PromptTemplateError(f"Prompt template is not valid XML: {exc}") from exc

    if root.tag != "prompt":
        raise PromptTemplateError(
            f"Prompt template root must be <prompt>, got <{root.tag}>"
        )

    rules_element = root.find("rules")
    if rules_element is None:
        raise PromptTemplateError("Prompt template is missing <rules>")
    rules = [_flatten(rule) for rule in rules_element.findall("rule")]

    return PromptTemplate(
        version=root.get("version", ""),
        jurisdiction=root.get("jurisdiction", ""),
        persona=_text(root, "persona"),
        tone=_text(root, "tone"),
        disclaimers=_text(root, "disclaimers"),
        rules=[rule for rule in rules if rule],
        output_format=_text(root, "outputFormat"),
    )


def load_prompt_template(path: str | Path) -> PromptTemplate:
    """Read and parse a template file (UTF-8)."""
    path = Path(path)
    try:
        xml = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PromptTemplateError(
            f"Cannot read prompt template '{path}': {exc}"
        ) from exc

    template = parse_prompt_template(xml)
    logger.info(
        "Loaded prompt template %s (version=%s, jurisdiction=%s, rules=%d)",
        path.name, template.version, template.jurisdiction, len(template.rules),
    )
    return template


@lru_cache
def get_system_prompt() -> str:
    """Render the configured template, falling back to the packaged one."""
    path = settings.system_prompt_path or DEFAULT_PROMPT_PATH
    return load_prompt_template(path).render()
