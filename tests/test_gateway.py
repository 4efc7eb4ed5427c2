"""Test the agent gateway's parsing and its never-raise contract."""

import asyncio

import pytest

from datapilot import prompts
from datapilot.gateway import (
    CODE_ERROR, CODE_ERROR_EXPLANATION, NO_CODE_MARKER, NO_SUMMARY, PLAN_ERROR,
    SUMMARY_ERROR, AgentGateway, extract_code, parse_plan,
)

from fakes import FakeProvider


def make_gateway(planner=None, coder=None, summarizer=None):
    return AgentGateway(
        planner=planner or FakeProvider(),
        coder=coder or FakeProvider(),
        summarizer=summarizer or FakeProvider(),
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def test_parse_plan_plain_json():
    assert parse_plan('["Load data", "Plot trend"]') == ["Load data", "Plot trend"]


def test_parse_plan_strips_markdown_fence():
    text = '```json\n["Load data", "Plot trend"]\n```'
    assert parse_plan(text) == ["Load data", "Plot trend"]


def test_parse_plan_empty():
    assert parse_plan("[]") == []
    assert parse_plan("") == []


@pytest.mark.parametrize("text", ["not json", '{"steps": ["a"]}', '[1, 2]', '"one step"'])
def test_parse_plan_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_plan(text)


def test_extract_code():
    text = "Here is the loader.\n```python\nimport pandas as pd\ndf = pd.read_csv('sales.csv')\n```\nIt reads the CSV."
    result, found = extract_code(text)
    assert found
    assert result.code == "import pandas as pd\ndf = pd.read_csv('sales.csv')"
    assert result.explanation == "Here is the loader.\n\nIt reads the CSV."


def test_extract_code_takes_first_block_and_strips_all_from_explanation():
    text = "A\n```python\nx = 1\n```\nB\n```python\ny = 2\n```"
    result, found = extract_code(text)
    assert found
    assert result.code == "x = 1"
    assert "y = 2" not in result.explanation


def test_extract_code_without_fence():
    result, found = extract_code("I would load the data with pandas.")
    assert not found
    assert result.code == NO_CODE_MARKER
    assert result.explanation == "I would load the data with pandas."


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def test_plan_builds_prompt_and_parses():
    planner = FakeProvider('["Load data", "Plot trend"]')
    gateway = make_gateway(planner=planner)

    result = asyncio.run(gateway.plan("Analyze sales.csv", "sales.csv, costs.csv"))

    assert result.ok
    assert result.value == ["Load data", "Plot trend"]
    assert 'User Query: "Analyze sales.csv"' in planner.prompts[0]
    assert "Available Files: sales.csv, costs.csv" in planner.prompts[0]
    assert planner.systems[0] == prompts.PLANNER_SYSTEM


def test_plan_degrades_on_provider_error():
    gateway = make_gateway(planner=FakeProvider(ConnectionError("network down")))
    result = asyncio.run(gateway.plan("goal", "none"))
    assert not result.ok
    assert result.value == [PLAN_ERROR]
    assert "network down" in result.error


def test_plan_degrades_on_malformed_output():
    gateway = make_gateway(planner=FakeProvider("Sure! Step one: load the data."))
    result = asyncio.run(gateway.plan("goal", "none"))
    assert not result.ok
    assert result.value == [PLAN_ERROR]


def test_code_step_passes_context():
    coder = FakeProvider("```python\nx = 1\n```\nSets x.")
    gateway = make_gateway(coder=coder)

    result = asyncio.run(gateway.code_step("Set x", "### Step 1: Load\ndf = 1\n\n"))

    assert result.ok
    assert result.value.code == "x = 1"
    assert result.value.explanation == "Sets x."
    assert 'Current Step: "Set x"' in coder.prompts[0]
    assert "### Step 1: Load\ndf = 1" in coder.prompts[0]


def test_code_step_without_fence_is_still_ok():
    gateway = make_gateway(coder=FakeProvider("No code today."))
    result = asyncio.run(gateway.code_step("Plot", ""))
    assert result.ok
    assert result.value.code == NO_CODE_MARKER


def test_code_step_degrades_on_error():
    gateway = make_gateway(coder=FakeProvider(TimeoutError("slow model")))
    result = asyncio.run(gateway.code_step("Plot", ""))
    assert not result.ok
    assert result.value.code == CODE_ERROR
    assert result.value.explanation == CODE_ERROR_EXPLANATION


def test_summarize():
    summarizer = FakeProvider("Sales grew 12%.")
    gateway = make_gateway(summarizer=summarizer)
    result = asyncio.run(gateway.summarize("### Step 1: Load\nx\n\n"))
    assert result.ok
    assert result.value == "Sales grew 12%."
    assert summarizer.prompts[0].startswith("Execution Log:\n### Step 1: Load")


def test_summarize_empty_and_error():
    gateway = make_gateway(summarizer=FakeProvider("", RuntimeError("quota")))
    assert asyncio.run(gateway.summarize("ctx")).value == NO_SUMMARY

    result = asyncio.run(gateway.summarize("ctx"))
    assert not result.ok
    assert result.value == SUMMARY_ERROR
