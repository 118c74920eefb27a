"""Enqueue message validation tests."""

import pytest
from hypothesis import given, strategies as st
from returns.result import Failure, Success

from core.validate import GenerationJob, parse_generation_job, parse_regeneration_job


def test_generation_job_valid():
    result = parse_generation_job(
        {"userId": "u1", "projectId": "p1", "prompt": "  Fitness app  ", "frames": [], "theme": None}
    )

    assert isinstance(result, Success)
    job = result.unwrap()
    assert job.prompt == "Fitness app"
    assert job.frames == []


def test_generation_job_whitespace_prompt():
    result = parse_generation_job({"userId": "u1", "projectId": "p1", "prompt": "   "})

    assert isinstance(result, Failure)
    assert result.failure().details[0]["field"] == "prompt"


def test_generation_job_rejects_unknown_fields():
    result = parse_generation_job({"userId": "u1", "projectId": "p1", "prompt": "x", "bogus": 1})
    assert isinstance(result, Failure)


def test_generation_job_non_object():
    result = parse_generation_job(["not", "a", "dict"])
    assert isinstance(result, Failure)
    assert "Expected an object" in result.failure().message


def test_generation_job_instance_passthrough():
    job = GenerationJob(user_id="u1", project_id="p1", prompt="x")
    assert parse_generation_job(job).unwrap() is job


def test_regeneration_job_requires_frame_id():
    result = parse_regeneration_job({"userId": "u1", "projectId": "p1", "prompt": "brighter"})

    assert isinstance(result, Failure)
    assert any(d["field"] == "frameId" for d in result.failure().details)


def test_regeneration_job_with_frames():
    result = parse_regeneration_job(
        {
            "userId": "u1",
            "projectId": "p1",
            "frameId": "f1",
            "prompt": "brighter",
            "theme": "midnight",
            "existingFrames": [{"id": "f1", "title": "Home", "htmlContent": "<div></div>"}],
        }
    )

    job = result.unwrap()
    assert job.existing_frames[0].html_content == "<div></div>"


@given(st.text(min_size=1, max_size=200).filter(lambda s: s.strip()))
def test_valid_prompts_are_stripped(prompt):
    """Property test: any non-blank prompt validates and is stripped."""
    job = parse_generation_job({"userId": "u", "projectId": "p", "prompt": prompt}).unwrap()
    assert job.prompt == prompt.strip()
