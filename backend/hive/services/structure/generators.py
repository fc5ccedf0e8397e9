"""Structure generators: the capability that turns intake context into a proposal."""

from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from ... import config, schemas
from ...results import Issue, Result
from .prompts import build_structure_prompt

logger = logging.getLogger(__name__)

# purpose: injectable proposal generators (offline deterministic and OpenAI-backed)
# inputs: StructureContext built from the intake form and workspace
# outputs: Result carrying a validated StructureProposal or external issues
# status: active


class StructureGenerator(Protocol):
    async def generate(
        self, context: schemas.StructureContext
    ) -> Result[schemas.StructureProposal]:
        ...

    async def aclose(self) -> None:
        ...


def _slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class StaticStructureGenerator:
    """Deterministic generator used when no model provider is configured."""

    CORE_CHANNELS = (
        ("general", "General discussion and announcements"),
        ("announcements", "Important announcements"),
        ("random", "Off-topic conversations"),
    )

    async def generate(
        self, context: schemas.StructureContext
    ) -> Result[schemas.StructureProposal]:
        channels = [
            schemas.ProposedChannel(name=name, description=description, type="core")
            for name, description in self.CORE_CHANNELS
        ]
        seen = {channel.name for channel in channels}
        for activity in context.core_activities:
            if len(channels) >= context.channel_budget:
                break
            slug = _slugify(activity)
            if not slug or slug in seen:
                continue
            seen.add(slug)
            channels.append(
                schemas.ProposedChannel(
                    name=slug[:80],
                    description=f"Workstream for {activity}",
                    type="workstream",
                )
            )
        proposal = schemas.StructureProposal(
            channels=channels,
            committees=[],
            rationale=(
                f"Baseline structure for {context.workspace_name}: core channels for "
                f"shared communication plus one workstream per core activity."
            ),
            estimated_complexity="simple",
        )
        return Result.success(proposal)

    async def aclose(self) -> None:
        return None


class OpenAIStructureGenerator:
    """Chat-completions backed generator using the OpenAI SDK.

    Transient failures (connection errors, 408/409/429 and 5xx) are retried by
    the client with exponential backoff before an ``external`` issue is
    returned.
    """

    provider = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        model: str = config.OPENAI_MODEL,
        base_url: str = config.OPENAI_BASE_URL,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        request_timeout: float = 60.0,
        max_retries: int = config.OPENAI_MAX_RETRIES,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("OPENAI_API_KEY is not configured")
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=request_timeout,
            max_retries=max_retries,
            http_client=http_client,
        )

    async def aclose(self) -> None:
        await self.client.close()

    async def _complete(self, prompt: str) -> Result[str]:
        try:
            response = await self.client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.APITimeoutError:
            return Result.failure(Issue.external(self.provider, "request timed out"))
        except openai.APIConnectionError as exc:
            return Result.failure(Issue.external(self.provider, f"request failed: {exc}"))
        except openai.APIStatusError as exc:
            return Result.failure(
                Issue.external(
                    self.provider, f"HTTP {exc.status_code}: {exc.response.text[:200]}"
                )
            )
        try:
            content = response.choices[0].message.content
        except (IndexError, AttributeError, TypeError):
            return Result.failure(Issue.external(self.provider, "unexpected response shape"))
        if not content:
            return Result.failure(Issue.external(self.provider, "empty completion"))
        return Result.success(content)

    async def generate(
        self, context: schemas.StructureContext
    ) -> Result[schemas.StructureProposal]:
        logger.info(
            "Generating workspace structure",
            extra={"workspace_name": context.workspace_name, "channel_budget": context.channel_budget},
        )
        completion = await self._complete(build_structure_prompt(context))
        if not completion.ok:
            return Result.failure(*completion.issues)
        try:
            proposal = schemas.StructureProposal.model_validate_json(completion.value)
        except ValidationError as exc:
            logger.warning(
                "Structure proposal failed validation",
                extra={"errors": exc.error_count()},
            )
            return Result.failure(
                Issue.external(self.provider, f"malformed model output ({exc.error_count()} errors)")
            )
        logger.info(
            "Structure generated",
            extra={
                "channel_count": len(proposal.channels),
                "committee_count": len(proposal.committees),
                "complexity": proposal.estimated_complexity,
            },
        )
        return Result.success(proposal)


def build_structure_generator() -> StructureGenerator:
    if config.USE_REAL_AI:
        return OpenAIStructureGenerator(
            config.OPENAI_API_KEY,
            model=config.OPENAI_MODEL,
            base_url=config.OPENAI_BASE_URL,
            request_timeout=config.STRUCTURE_GENERATION_TIMEOUT,
        )
    logger.info("Using static structure generator (USE_REAL_AI disabled)")
    return StaticStructureGenerator()
