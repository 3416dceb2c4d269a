"""Rendering of completed triage results as Persian markdown text."""

import re
from typing import Any, Dict, List, Optional

from salamat.models.messages import QuickAction, SpecialFeatures
from salamat.models.triage import TriageTemplate
from salamat.triage.prompts import (
    DEFAULT_RESULT_HEADER,
    FOLLOW_UP_SUGGESTIONS,
    TEMPLATE_ONLY_SECTION_TEXT,
)

ASSESSMENT_KEY = "comprehensive_assessment"

_BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)

# ActionButton.kind -> QuickAction.type
_QUICK_ACTION_TYPES = {"call": "emergency", "action": "action", "info": "info"}


def _section_text(value: Any) -> str:
    """Flatten model-supplied section content into display text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return _BR_TAG.sub("\n", value).strip()
    if isinstance(value, (list, tuple)):
        lines = [_section_text(item) for item in value]
        return "\n".join(line for line in lines if line)
    if isinstance(value, dict):
        lines = [f"{key}: {_section_text(item)}" for key, item in value.items()]
        return "\n".join(lines)
    return str(value).strip()


def _call_lines(template: TriageTemplate) -> List[str]:
    return [
        f"🚨 **{button.label}**: {button.phone}"
        for button in template.action_buttons
        if button.kind == "call" and button.phone
    ]


def _disclaimer_line(template: TriageTemplate) -> Optional[str]:
    if not template.disclaimer:
        return None
    return f"⚠️ **توجه**: {template.disclaimer}"


def format_final_response(content: Dict[str, Any], template: TriageTemplate) -> str:
    """
    Render the final triage result.

    Sections follow template order. A section whose key is missing borrows the
    comprehensive assessment text, but that text is only ever shown once. A
    section with nothing to show is left out entirely.

    Args:
        content: Parsed final-response JSON keyed by section key
        template: Template of the classified category

    Returns:
        Markdown text: header, call lines, sections, disclaimer
    """
    parts: List[str] = [f"**{template.header}**"]
    parts.extend(_call_lines(template))

    assessment_shown = False
    for section in template.sections:
        text = _section_text(content.get(section.key))
        if text and section.key == ASSESSMENT_KEY:
            assessment_shown = True
        elif not text and not assessment_shown:
            text = _section_text(content.get(ASSESSMENT_KEY))
            if text:
                assessment_shown = True

        if not text:
            continue
        parts.append(f"{section.icon} **{section.title}**\n\n{text}")

    disclaimer = _disclaimer_line(template)
    if disclaimer:
        parts.append(disclaimer)

    return "\n\n".join(parts).strip()


def format_template_response(template: Optional[TriageTemplate]) -> str:
    """Render a result from the template alone, used when no model content is available."""
    if template is None:
        return f"**{DEFAULT_RESULT_HEADER}**\n\n{TEMPLATE_ONLY_SECTION_TEXT}"

    parts: List[str] = [f"**{template.header or DEFAULT_RESULT_HEADER}**"]

    if template.primary_action:
        parts.append(f"📋 **اقدام اولیه**: {template.primary_action}")

    parts.extend(_call_lines(template))

    for section in template.sections:
        parts.append(f"{section.icon} **{section.title}**\n{TEMPLATE_ONLY_SECTION_TEXT}")

    disclaimer = _disclaimer_line(template)
    if disclaimer:
        parts.append(disclaimer)

    return "\n\n".join(parts).strip()


def build_quick_actions(template: TriageTemplate) -> List[QuickAction]:
    """Quick actions derived from the template's action buttons."""
    return [
        QuickAction(
            label=button.label,
            action=button.action,
            type=_QUICK_ACTION_TYPES.get(button.kind, "action"),
            phone=button.phone,
        )
        for button in template.action_buttons
    ]


def build_special_features(template: TriageTemplate) -> SpecialFeatures:
    return SpecialFeatures(
        quick_actions=build_quick_actions(template),
        follow_up_suggestions=list(FOLLOW_UP_SUGGESTIONS),
    )
