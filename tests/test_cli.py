"""Test the command-line front-end."""

import asyncio
import functools

from datapilot import cli
from datapilot.pipeline import Pipeline
from fakes import FakeGateway


def test_parser():
    args = cli.build_parser().parse_args(["run", "Analyze sales", "--file", "a.csv", "--file", "b.csv"])
    assert args.command == "run"
    assert args.goal == "Analyze sales"
    assert args.files == ["a.csv", "b.csv"]


def test_run_goal_renders_events(monkeypatch, capsys):
    monkeypatch.setattr(cli, "Pipeline", functools.partial(Pipeline, gateway=FakeGateway()))
    status = asyncio.run(cli.run_goal("Analyze sales.csv", ["sales.csv"], step_delay=0))

    assert status == "completed"
    out = capsys.readouterr().out
    assert "Execution Plan" in out
    assert "Step 1: Load data" in out
    assert "Run completed" in out


def test_telemetry_command(capsys):
    assert cli.main(["telemetry", "--ticks", "3"]) == 0
    out = capsys.readouterr().out
    assert "Simulated Telemetry" in out
