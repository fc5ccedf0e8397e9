import json

import httpx
import pytest

from hive import schemas
from hive.results import IssueKind
from hive.services.structure.generators import (
    OpenAIStructureGenerator,
    StaticStructureGenerator,
    build_structure_generator,
)
from hive.services.structure.prompts import build_structure_prompt


class RecordingTransport:
    """Serves queued httpx responses (or raises queued errors) and records requests."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _completion(content):
    return httpx.Response(
        200,
        json={
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-test",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": content},
                }
            ],
        },
    )


def _generator(transport, **kwargs):
    kwargs.setdefault("max_retries", 0)
    return OpenAIStructureGenerator(
        "sk-test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(transport)),
        **kwargs,
    )


CONTEXT = schemas.StructureContext(
    community_size="20-50",
    core_activities=["Sequencing", "Data Review"],
    moderation_capacity="low",
    channel_budget=6,
    additional_context="Hybrid lab",
    workspace_name="Genomics Lab",
)

DOCUMENT = {
    "channels": [
        {"name": "general", "description": "Lab wide", "type": "core", "is_private": False},
        {"name": "sequencing", "description": "Runs", "type": "workstream"},
    ],
    "committees": [{"name": "Safety", "description": "Biosafety", "purpose": "Review"}],
    "rationale": "Small lab with two active programmes.",
    "estimated_complexity": "moderate",
}


def test_prompt_mentions_context():
    prompt = build_structure_prompt(CONTEXT)
    assert "Genomics Lab" in prompt
    assert "Sequencing, Data Review" in prompt
    assert "6 channels maximum" in prompt
    assert "Hybrid lab" in prompt


@pytest.mark.asyncio
async def test_openai_generator_parses_json_completion():
    transport = RecordingTransport(_completion(json.dumps(DOCUMENT)))
    generator = _generator(transport, model="gpt-test", base_url="https://llm.example/v1/")

    result = await generator.generate(CONTEXT)
    await generator.aclose()
    assert result.ok, result.issues
    assert [c.name for c in result.value.channels] == ["general", "sequencing"]
    assert result.value.committees[0].purpose == "Review"

    request = transport.requests[0]
    assert str(request.url) == "https://llm.example/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-test"
    assert body["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_openai_generator_retries_transient_errors():
    transport = RecordingTransport(
        httpx.Response(503, headers={"retry-after-ms": "1"}, json={"error": {"message": "busy"}}),
        _completion(json.dumps(DOCUMENT)),
    )
    generator = _generator(transport, max_retries=2)

    result = await generator.generate(CONTEXT)
    assert result.ok, result.issues
    assert len(transport.requests) == 2


@pytest.mark.asyncio
async def test_openai_generator_gives_up_after_max_retries():
    transport = RecordingTransport(
        *(
            httpx.Response(429, headers={"retry-after-ms": "1"}, json={"error": {"message": "slow down"}})
            for _ in range(3)
        )
    )
    generator = _generator(transport, max_retries=2)

    result = await generator.generate(CONTEXT)
    assert not result.ok
    assert "HTTP 429" in result.issues[0].message
    assert len(transport.requests) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "outcome, expected",
    [
        (httpx.ConnectError("refused"), "request failed"),
        (httpx.ReadTimeout("slow"), "request timed out"),
        (httpx.Response(401, json={"error": {"message": "bad key"}}), "HTTP 401"),
        (httpx.Response(200, json={"id": "x", "object": "chat.completion", "created": 0,
                                   "model": "gpt-test", "choices": []}),
         "unexpected response shape"),
        (_completion(""), "empty completion"),
        (_completion('{"channels": [{"name": ""}]}'), "malformed model output"),
        (_completion("not json"), "malformed model output"),
    ],
)
async def test_openai_generator_failures_are_external(outcome, expected):
    generator = _generator(RecordingTransport(outcome))
    result = await generator.generate(CONTEXT)
    assert not result.ok
    issue = result.issues[0]
    assert issue.kind is IssueKind.EXTERNAL
    assert issue.meta == {"service": "openai"}
    assert expected in issue.message


def test_openai_generator_requires_key():
    with pytest.raises(ValueError):
        OpenAIStructureGenerator("")


def test_factory_selects_openai_when_enabled(monkeypatch):
    from hive import config

    monkeypatch.setattr(config, "USE_REAL_AI", True)
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    generator = build_structure_generator()
    assert isinstance(generator, OpenAIStructureGenerator)
    assert generator.client.max_retries == config.OPENAI_MAX_RETRIES

    monkeypatch.setattr(config, "USE_REAL_AI", False)
    assert isinstance(build_structure_generator(), StaticStructureGenerator)

@pytest.mark.asyncio
async def test_static_generator_respects_budget():
    result = await StaticStructureGenerator().generate(
        CONTEXT.model_copy(update={"core_activities": ["A", "B", "C", "D", "E"], "channel_budget": 5})
    )
    names = [c.name for c in result.value.channels]
    assert names == ["general", "announcements", "random", "a", "b"]
    assert len(result.value.rationale) > 50
