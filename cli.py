#!/usr/bin/env python3
"""Simple CLI for running IntentCompass flows locally"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Optional

from intentcompass.core.flow.dispatcher import create_dispatcher
from intentcompass.core.flow.errors import FlowError, FlowValidationError
from intentcompass.core.flow.models import (
    ExecutionResult,
    FlowExecution,
    FlowGraph,
    FlowSimulation,
    parse_edges,
    parse_nodes,
)
from intentcompass.logging_config import setup_logging
from intentcompass.providers.nexus import get_nexus_provider
from intentcompass.services.templates import TemplateNotFoundError, TemplateService


def load_graph(path: Optional[str], template_id: Optional[str]) -> FlowGraph:
    """Read a graph from an exported JSON file or from a saved template."""
    if template_id:
        return TemplateService().load_template(template_id)
    if not path:
        raise ValueError("Provide a flow file or --template")

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return FlowGraph(nodes=parse_nodes(raw.get("nodes", [])), edges=parse_edges(raw.get("edges", [])))


def print_simulation(simulation: FlowSimulation):
    """Pretty print a simulation"""
    print("\n🧮 Simulation")
    print("=" * 50)
    print(f"Total Cost: ${simulation.total_cost}")
    print(f"Total Time: ~{simulation.total_time}s")
    print(f"Success Rate: {simulation.success_rate * 100:.0f}%")

    print("\nSteps:")
    print("-" * 50)
    for i, result in enumerate(simulation.node_results, 1):
        if result.success:
            route = " → ".join(result.route or [])
            print(f"{i:2d}. ✅ {result.node_id:<14} ${result.estimated_cost:>8} {result.estimated_time:>4}s  {route}")
        else:
            print(f"{i:2d}. ❌ {result.node_id:<14} {result.error}")


def print_progress(node_id: str, result: ExecutionResult):
    if result.success:
        print(f"  ✅ {node_id}: {result.transaction_hash}")
        if result.explorer_url:
            print(f"     {result.explorer_url}")
    else:
        print(f"  ❌ {node_id}: {result.error}")


def print_execution(execution: FlowExecution):
    icon = "✅" if execution.status.value == "completed" else "❌"
    elapsed = ((execution.end_time or execution.start_time) - execution.start_time) / 1000
    print(f"\n{icon} Execution {execution.status.value} in {elapsed:.1f}s")
    if execution.first_error:
        print(f"Error: {execution.first_error}")


async def open_backend(address: Optional[str]):
    """Open a backend session when an address is given; otherwise run on local estimates."""
    if not address:
        return None
    provider = get_nexus_provider()
    await provider.initialize(address)
    print(f"🔗 Nexus session opened for {address}")
    return provider


async def cli_simulate(path: Optional[str], template_id: Optional[str], address: Optional[str]):
    graph = load_graph(path, template_id)
    backend = await open_backend(address)
    try:
        simulation = await create_dispatcher(backend).simulate_flow(graph.nodes, graph.edges)
        print_simulation(simulation)
    finally:
        if backend is not None:
            await backend.close()


async def cli_execute(path: Optional[str], template_id: Optional[str], address: Optional[str]):
    graph = load_graph(path, template_id)
    backend = await open_backend(address)
    if backend is None:
        print("⚠️  No address given, executing with mock transactions")
    try:
        print("🚀 Executing flow...")
        execution = await create_dispatcher(backend).execute_flow(
            graph.nodes, graph.edges, on_progress=print_progress
        )
        print_execution(execution)
    finally:
        if backend is not None:
            await backend.close()


def cli_templates(action: str, template_id: Optional[str]):
    service = TemplateService()

    if action == "show":
        template = service.get_template(template_id or "")
        if template is None:
            print(f"❌ Template not found: {template_id}")
            return
        print(json.dumps(template.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))
        return

    templates = service.get_example_templates() if action == "examples" else service.get_templates()
    if not templates:
        print("No saved templates")
        return
    for template in templates:
        tags = f" [{', '.join(template.tags)}]" if template.tags else ""
        print(f"{template.id:<28} {template.name}{tags}")
        if template.description:
            print(f"    {template.description}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="IntentCompass CLI")
    parser.add_argument("--log-level", default=None, help="Override log level")
    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (("simulate", "Estimate cost and time of a flow"), ("execute", "Execute a flow")):
        flow_parser = subparsers.add_parser(name, help=help_text)
        flow_parser.add_argument("file", nargs="?", help="Flow JSON file with nodes and edges")
        flow_parser.add_argument("--template", help="Saved or example template id")
        flow_parser.add_argument("--address", help="Wallet address to open a Nexus session for")

    templates_parser = subparsers.add_parser("templates", help="List or show templates")
    templates_parser.add_argument("action", nargs="?", choices=["list", "examples", "show"], default="list")
    templates_parser.add_argument("template_id", nargs="?", help="Template id for 'show'")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return

    command = args.command.lower()

    try:
        if command == "simulate":
            await cli_simulate(args.file, args.template, args.address)

        elif command == "execute":
            await cli_execute(args.file, args.template, args.address)

        elif command == "templates":
            cli_templates(args.action, args.template_id)

        else:
            print(f"❌ Unknown command: {command}")
            parser.print_help()

    except FlowValidationError as e:
        print(f"❌ Invalid flow: {'; '.join(e.issues)}")
    except (FlowError, TemplateNotFoundError, ValueError, OSError) as e:
        print(f"❌ Error: {e}")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
