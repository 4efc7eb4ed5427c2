"""Command-line interface: stream a run to the terminal, or start the server."""

from __future__ import annotations

import argparse
import asyncio
import time

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from datapilot.models import Event
from datapilot.pipeline import Pipeline
from datapilot.telemetry import TelemetrySimulator

console = Console()

ROLE_STYLES = {
    "User": "bold white",
    "Planner": "magenta",
    "Coder": "cyan",
    "Reviewer": "yellow",
    "Summary": "green",
    "System": "red",
}

STATUS_STYLES = {
    "pending": "dim",
    "active": "blue",
    "completed": "green",
    "failed": "red",
}


def print_plan(steps: list[dict]):
    table = Table(show_header=True, header_style="bold magenta", title="Execution Plan")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Step", style="green")
    table.add_column("Status")
    for step in steps:
        style = STATUS_STYLES.get(step["status"], "white")
        table.add_row(str(step["id"]), step["description"], f"[{style}]{step['status']}[/{style}]")
    console.print(table)


def print_event(event: Event):
    """Render one pipeline event."""
    data = event.data
    if event.type == "log.entry":
        if data["kind"] == "code":
            return  # shown with the artifact
        style = ROLE_STYLES.get(data["role"], "white")
        console.print(f"[{style}]{data['role']:>8}[/{style}] {data['content']}")
    elif event.type == "plan.ready":
        print_plan(data["steps"])
    elif event.type == "step.status_changed":
        style = STATUS_STYLES.get(data["status"], "white")
        console.print(f"[dim]step {data['step_id']}:[/dim] [{style}]{data['status']}[/{style}]")
    elif event.type == "artifact.added":
        artifact = data["artifact"]
        if artifact["kind"] == "code":
            body = Syntax(artifact["content"], artifact["language"] or "python", line_numbers=True)
            console.print(Panel(body, title=f"[bold]{artifact['title']}[/bold]", border_style="blue"))
        else:
            console.print(Panel(artifact["content"], title=f"[bold]{artifact['title']}[/bold]", border_style="green"))
    elif event.type == "run.completed":
        failed = data["failed_steps"]
        note = f", failed steps: {failed}" if failed else ""
        console.print(f"\n[bold green]Run completed[/bold green] ({data['steps']} steps{note})")
    elif event.type == "run.failed":
        console.print(f"\n[bold red]Run failed[/bold red] ({data['reason']}): {data['error'] or ''}")


async def run_goal(goal: str, files: list[str], step_delay: float) -> str:
    pipeline = Pipeline(step_delay=step_delay)
    async for event in pipeline.run(goal, files):
        print_event(event)
    return pipeline.status


def print_telemetry(ticks: int, interval: float):
    simulator = TelemetrySimulator()
    table = Table(show_header=True, header_style="bold magenta", title="Simulated Telemetry")
    for column in ("Tick", "Accuracy", "F1", "Drift", "Status", "Latency"):
        table.add_column(column)
    for i in range(1, ticks + 1):
        metrics = simulator.tick().to_dict()
        table.add_row(
            str(i),
            metrics["accuracy"],
            metrics["f1Score"],
            metrics["driftScore"],
            metrics["driftStatus"],
            metrics["avgLatency"],
        )
        if interval > 0 and i < ticks:
            time.sleep(interval)
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="datapilot", description="Agentic data science workspace")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Plan, code and summarize an analysis goal")
    run.add_argument("goal")
    run.add_argument("--file", dest="files", action="append", default=[], help="Name of an available data file")
    run.add_argument("--step-delay", type=float, default=0.0)

    sub.add_parser("serve", help="Start the API server")

    telemetry = sub.add_parser("telemetry", help="Print simulated monitoring metrics")
    telemetry.add_argument("--ticks", type=int, default=10)
    telemetry.add_argument("--interval", type=float, default=0.0)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        from datapilot.server import main as serve
        serve()
        return 0

    if args.command == "telemetry":
        print_telemetry(args.ticks, args.interval)
        return 0

    console.print("[bold magenta]DataPilot[/bold magenta]")
    console.print("=" * 60)
    try:
        status = asyncio.run(run_goal(args.goal, args.files, args.step_delay))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        return 130
    return 0 if status == "completed" else 1


if __name__ == "__main__":
    raise SystemExit(main())
