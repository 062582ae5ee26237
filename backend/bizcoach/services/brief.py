from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from bizcoach.schemas.coaching import (
    BusinessPlan,
    BusinessProfile,
    ProjectContext,
    ProjectOutline,
    ProjectSection,
)

BRIEF_VERSION = "1.0"

_FILE_STRUCTURE = """```
project-root/
├── src/
│   ├── app/
│   │   ├── page.tsx (main landing page)
│   │   └── layout.tsx
│   ├── components/
│   │   ├── sections/
│   │   └── ui/
│   └── lib/
├── public/
├── package.json
└── tailwind.config.js
```"""


def _section_block(section: ProjectSection) -> str:
    marker = "⭐" if section.priority == "must-have" else "○"
    lines = [
        "",
        f"### {marker} {section.name} ({section.priority})",
        f"**Purpose:** {section.purpose}",
        "**Key Elements:**",
        *[f"- {element}" for element in section.key_elements],
    ]
    if section.copy_guidance:
        lines += ["", f"**Copy Guidance:** {section.copy_guidance}"]
    lines += ["", f"**File Location:** `src/components/sections/{section.id}.tsx`", ""]
    return "\n".join(lines)


def generate_outline_brief(
    outline: ProjectOutline, context: ProjectContext, project_name: str
) -> str:
    """Markdown build brief for a web-project outline."""
    sections = "\n---\n".join(_section_block(section) for section in outline.sections)
    style = outline.style_recommendations
    palette = "\n".join(f"- {color}" for color in style.color_suggestions)
    return f"""# Project Build Brief: {project_name}

## Business Context

**Project Type:** {context.project_type}
**Business Name:** {context.business_name or 'Not specified'}
**Target Audience:** {context.target_audience}
**Unique Value Proposition:** {context.unique_value}
**Primary Goal:** {context.primary_goal}
**Brand Tone:** {context.tone}
**Additional Notes:** {context.additional_notes or 'None'}

## Project Summary

{outline.summary}

## Sections to Build
{sections}

## Style Guidelines

**Design Tone:** {style.tone}

**Color Palette:**
{palette}

**Layout Style:** {style.layout_style}

**Component Library:** Use Tailwind CSS for styling. Prefer functional components with TypeScript.

## Technical Requirements

**Framework:** Next.js 14+ (App Router)
**Styling:** Tailwind CSS
**Language:** TypeScript
**Deployment:** Vercel-ready
**Performance:** Lighthouse score > 90

## File Structure

{_FILE_STRUCTURE}

## Build Instructions

1. Initialize Next.js project with TypeScript and Tailwind CSS
2. Create the file structure as outlined above
3. Build sections in priority order (must-have first)
4. Implement responsive design (mobile, tablet, desktop)
5. Optimize images and assets
6. Test on multiple devices and browsers

## Success Criteria

- [ ] All must-have sections implemented
- [ ] Mobile-responsive design
- [ ] Fast page load (< 3 seconds)
- [ ] Accessible (WCAG 2.1 AA)
- [ ] SEO-optimized (meta tags, structured data)
"""


def _profile_lines(profile: BusinessProfile) -> list[str]:
    lines = ["## Business Profile", ""]
    if profile.snapshot:
        lines += [profile.snapshot, ""]
    for label, values in (
        ("Goals", profile.goals),
        ("Challenges", profile.challenges),
        ("Offers", profile.offers),
    ):
        if values:
            lines += [f"**{label}:**", *[f"- {value}" for value in values], ""]
    if profile.constraints:
        lines += [f"**Constraints:** {profile.constraints}", ""]
    for area, findings in profile.extensions.items():
        title = area.replace("_", " ").title()
        lines += [f"**{title}:**", *[f"- {finding}" for finding in findings], ""]
    return lines


def generate_plan_brief(
    plan: BusinessPlan,
    project_name: str,
    business_profile: BusinessProfile | None = None,
) -> str:
    lines = [f"# Strategic Plan: {project_name}", ""]
    if business_profile is not None:
        lines += _profile_lines(business_profile)

    lines += ["## Strategy Overview", "", plan.strategy_overview, ""]

    lines += ["## Objectives", ""]
    lines += [
        f"{index}. **{objective.description}** (measured by: {objective.measurable})"
        for index, objective in enumerate(plan.objectives, start=1)
    ]
    lines.append("")

    lines += ["## Action Plan", ""]
    for phase in plan.phases:
        lines += [f"### {phase.name} ({phase.timeframe})", ""]
        for priority in ("high", "medium", "low"):
            actions = [action for action in phase.actions if action.priority == priority]
            if not actions:
                continue
            lines.append(f"**{priority.title()} priority:**")
            lines += [f"- [ ] {action.description}" for action in actions]
            lines.append("")

    lines += [
        "## Metrics",
        "",
        "| Metric | Target | Checkpoint |",
        "| --- | --- | --- |",
        *[f"| {m.metric} | {m.target} | {m.checkpoint} |" for m in plan.metrics],
        "",
    ]

    lines += ["## Risks & Mitigations", ""]
    lines += [f"- **{risk.risk}:** {risk.mitigation}" for risk in plan.risks]
    lines.append("")
    return "\n".join(lines)


def generate_json_metadata(outline: ProjectOutline, context: ProjectContext) -> dict[str, Any]:
    return {
        "project": {
            "type": context.project_type,
            "businessName": context.business_name,
            "targetAudience": context.target_audience,
            "uniqueValue": context.unique_value,
            "primaryGoal": context.primary_goal,
            "tone": context.tone,
        },
        "outline": outline.model_dump(mode="json", by_alias=True),
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "version": BRIEF_VERSION,
    }


def brief_filename(project_name: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9._-]+", "_", project_name).strip("_") or "project"
    return f"{slug}_BRIEF.md"
