"""Prompt template for workspace structure generation."""

from __future__ import annotations

from ... import schemas


def build_structure_prompt(context: schemas.StructureContext) -> str:
    extra = (
        f"**Additional Context:** {context.additional_context}\n"
        if context.additional_context
        else ""
    )
    return f"""You are an expert in organizational design and workspace architecture. Your task is to design an optimal communication structure for a collaborative workspace.

## Workspace Context

**Name:** {context.workspace_name}
**Community Size:** {context.community_size}
**Core Activities:** {", ".join(context.core_activities)}
**Moderation Capacity:** {context.moderation_capacity}
**Channel Budget:** {context.channel_budget} channels maximum
{extra}
## Your Task

Design a workspace structure that includes:

1. **Core Channels** - Essential channels for general communication
2. **Workstreams** - Activity-specific channels for focused work
3. **Committees** - Groups for specific governance or project areas (optional)

## Naming Conventions

- Use lowercase with hyphens (e.g., "eng-backend", "design-ux")
- Keep names under 80 characters
- Avoid abbreviations unless universally understood

## Output Format

Respond with a JSON object matching this exact structure:

{{
  "channels": [
    {{
      "name": "channel-name",
      "description": "Clear description of purpose",
      "type": "core" | "workstream" | "committee",
      "is_private": boolean,
      "suggested_members": ["role1", "role2"]
    }}
  ],
  "committees": [
    {{
      "name": "Committee Name",
      "description": "What this committee does",
      "purpose": "Why this committee exists"
    }}
  ],
  "rationale": "Explanation of your design decisions",
  "estimated_complexity": "simple" | "moderate" | "complex"
}}

## Constraints

- Total channels must not exceed {context.channel_budget}
- At minimum include: #general, #announcements, #random
- Private channels should be at most 20% of total (considering moderation)
- Each workstream should align with core activities
- Avoid redundant or overlapping channels

Now generate the optimal structure for this workspace."""
