"""Command-line interface for histograph."""

import sys
import json
import argparse
import logging
from typing import List, Optional

import networkx as nx
from rich.console import Console
from rich.table import Table
from rich import box

from .analytics.enrichment import GraphEnricher
from .analytics.primitives import to_networkx
from .analytics.regional import RegionalAnalyzer
from .analytics.summary import summarize_graph
from .config import ConfigManager, HistographConfig
from .deduplication.detector import DuplicateDetector
from .errors import BaseGraphError, ErrorHandler
from .logging_config import setup_logging
from .seed import load_seed_graph
from .storage.json_store import read_graph_file, write_graph_file

logger = logging.getLogger(__name__)

console = Console()


def enrich_command(args, config: HistographConfig) -> int:
    """Enrich a graph file."""
    graph = read_graph_file(args.input)
    enriched = GraphEnricher(config.analytics).enrich(graph)

    if args.output:
        write_graph_file(enriched, args.output)
        console.print(f"💾 Enriched graph saved to: {args.output}")
    else:
        print(json.dumps(enriched.to_export_dict(), ensure_ascii=False, indent=2))

    return 0


def duplicates_command(args, config: HistographConfig) -> int:
    """List lexical duplicate candidates."""
    graph = read_graph_file(args.input)
    candidates = DuplicateDetector(config.deduplication).detect_lexical(graph, args.threshold)

    if not candidates:
        console.print("✅ No duplicate candidates found")
        return 0

    table = Table(
        title="Duplicate Candidates",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Node A", style="cyan")
    table.add_column("Node B", style="cyan")
    table.add_column("Type")
    table.add_column("Similarity", justify="right", style="green")
    table.add_column("Reason", style="dim")

    for candidate in candidates:
        table.add_row(
            candidate.node_a.id,
            candidate.node_b.id,
            candidate.node_a.type.value,
            f"{candidate.similarity:.3f}",
            candidate.reason,
        )

    console.print(table)
    return 0


def regional_command(args, config: HistographConfig) -> int:
    """Show regional isolation and bridge nodes."""
    graph = read_graph_file(args.input)
    result = RegionalAnalyzer().analyze(graph)

    console.print(f"🗺️  Isolation index: {result.isolation_index:.3f}")
    console.print(f"   Dominant region: {result.dominant_region}")

    if result.bridges:
        table = Table(title="Bridge Nodes", box=box.SIMPLE_HEAD, header_style="bold")
        table.add_column("Id", style="cyan")
        table.add_column("Label")
        table.add_column("Score", justify="right", style="green")
        for bridge in result.bridges:
            table.add_row(bridge.id, bridge.label, f"{bridge.score:.2f}")
        console.print(table)

    return 0


def summary_command(args, config: HistographConfig) -> int:
    """Show graph statistics."""
    graph = read_graph_file(args.input)
    if args.enrich:
        graph = GraphEnricher(config.analytics).enrich(graph)
    summary = summarize_graph(graph, args.top_k)

    table = Table(title="Graph Summary", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Nodes", str(summary.node_count))
    table.add_row("Edges", str(summary.edge_count))
    table.add_row("Density", f"{summary.density:.4f}")
    table.add_row("Average degree", f"{summary.average_degree:.2f}")
    table.add_row("Components", str(summary.component_count))
    if summary.modularity is not None:
        table.add_row("Modularity", f"{summary.modularity:.3f}")
    if summary.global_balance is not None:
        table.add_row("Global balance", f"{summary.global_balance:.3f}")
    console.print(table)

    if summary.top_nodes:
        top = Table(title="Top Nodes by PageRank", box=box.SIMPLE_HEAD, header_style="bold")
        top.add_column("Id", style="cyan")
        top.add_column("Label")
        top.add_column("PageRank", justify="right", style="green")
        for entry in summary.top_nodes:
            top.add_row(entry["id"], entry["label"], f"{entry['pagerank']:.4f}")
        console.print(top)

    return 0


def seed_command(args, config: HistographConfig) -> int:
    """Write the bundled dataset."""
    graph = load_seed_graph()
    if not args.raw:
        graph = GraphEnricher(config.analytics).enrich(graph)

    if args.output:
        write_graph_file(graph, args.output)
        console.print(f"✅ Seed graph saved to: {args.output}")
    else:
        print(json.dumps(graph.to_export_dict(), ensure_ascii=False, indent=2))

    return 0


def export_command(args, config: HistographConfig) -> int:
    """Export a graph as JSON or GraphML."""
    graph = read_graph_file(args.input)

    if args.format == "graphml":
        g = to_networkx(graph)
        for _, attrs in g.nodes(data=True):
            _flatten_attributes(attrs)
        for _, _, attrs in g.edges(data=True):
            _flatten_attributes(attrs)
        nx.write_graphml(g, args.output)
    else:
        write_graph_file(graph, args.output)

    console.print(f"📤 Exported {len(graph.nodes)} nodes to: {args.output}")
    return 0


def generate_config(args, config: HistographConfig) -> int:
    """Generate a configuration template."""
    if args.output:
        ConfigManager().save_template(args.output)
        console.print(f"✅ Configuration template saved to: {args.output}")
    else:
        print(json.dumps(ConfigManager.DEFAULT_CONFIG, indent=2))
    return 0


def _flatten_attributes(attrs: dict) -> None:
    """GraphML only holds scalars; join list values."""
    for key, value in list(attrs.items()):
        if isinstance(value, (list, tuple)):
            attrs[key] = "; ".join(str(v) for v in value)
        elif isinstance(value, dict):
            attrs[key] = json.dumps(value, ensure_ascii=False)


COMMANDS = {
    "enrich": enrich_command,
    "duplicates": duplicates_command,
    "regional": regional_command,
    "summary": summary_command,
    "seed": seed_command,
    "export": export_command,
    "generate-config": generate_config,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="histograph",
        description="Histograph - analytics and deduplication for historical knowledge graphs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Write the bundled dataset, enriched
  histograph seed -o graph.json

  # Recompute every metric for a graph file
  histograph enrich graph.json -o enriched.json

  # Look for near-duplicate labels
  histograph duplicates graph.json --threshold 0.8

  # Export for Gephi
  histograph export graph.json -o graph.graphml --format graphml
""",
    )
    parser.add_argument("-c", "--config", help="Path to configuration file")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    enrich_parser = subparsers.add_parser("enrich", help="Recompute derived metrics")
    enrich_parser.add_argument("input", help="Graph JSON file")
    enrich_parser.add_argument("-o", "--output", help="Save to file (default: print to stdout)")

    dup_parser = subparsers.add_parser("duplicates", help="Find lexical duplicate candidates")
    dup_parser.add_argument("input", help="Graph JSON file")
    dup_parser.add_argument("--threshold", type=float, help="Minimum label similarity")

    regional_parser = subparsers.add_parser("regional", help="Regional isolation analysis")
    regional_parser.add_argument("input", help="Graph JSON file")

    summary_parser = subparsers.add_parser("summary", help="Graph statistics")
    summary_parser.add_argument("input", help="Graph JSON file")
    summary_parser.add_argument("--top-k", type=int, default=5, help="Top nodes to list")
    summary_parser.add_argument(
        "--enrich", action="store_true", help="Enrich before summarizing"
    )

    seed_parser = subparsers.add_parser("seed", help="Write the bundled dataset")
    seed_parser.add_argument("-o", "--output", help="Save to file (default: print to stdout)")
    seed_parser.add_argument("--raw", action="store_true", help="Skip enrichment")

    export_parser = subparsers.add_parser("export", help="Export a graph")
    export_parser.add_argument("input", help="Graph JSON file")
    export_parser.add_argument("-o", "--output", required=True, help="Output file")
    export_parser.add_argument(
        "--format", choices=["json", "graphml"], default="json", help="Output format"
    )

    config_parser = subparsers.add_parser("generate-config", help="Generate configuration template")
    config_parser.add_argument("-o", "--output", help="Save to file (default: print to stdout)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    error_handler = ErrorHandler()
    try:
        config = ConfigManager(args.config).load()
        setup_logging(
            format=config.logging.format,
            level=args.log_level or config.logging.level,
            log_file=config.logging.log_file,
        )
        with error_handler.error_context(operation=args.command):
            try:
                return COMMANDS[args.command](args, config)
            except Exception as e:
                error_handler.handle_error(e)
    except KeyboardInterrupt:
        console.print("\n⚠️  Interrupted by user")
        return 1
    except BaseGraphError as e:
        console.print(f"\n❌ {error_handler.create_user_friendly_message(e)}", markup=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
