#!/usr/bin/env python3
"""
Build Flow Graph - CLI tool for turning stored procedure files into flow graphs

Usage:
    python build_flow_graph.py procs/WEB_Get_Cliente.sql
    python build_flow_graph.py procs/WEB_Get_Cliente.sql --format mermaid -o output/cliente.mmd
    python build_flow_graph.py --sql-dir procs --output output/flows --summary
    python build_flow_graph.py --help
"""

import argparse
import json
import re
import sys
import traceback
from pathlib import Path

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent))

from graph_builder import FlowGraphBuilder, summarize_graph
from mermaid_writer import MermaidWriter
from parsers.sql_parser import SQLParser

# Default config path: config.json in project root (parent of src/)
CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

FORMAT_EXTENSIONS = {"json": ".json", "mermaid": ".mmd"}


def load_config(config_path=CONFIG_PATH):
    """Load config.json if it exists. Returns dict (possibly empty)."""
    config_path = Path(config_path)
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return {k: v for k, v in data.items() if not str(k).startswith("_")}
    except (OSError, ValueError) as exc:
        print(f"[WARN] Could not load {config_path}: {exc}")
        return {}


def apply_config_defaults(args, config_path=CONFIG_PATH):
    """Fill in args from config when not provided on command line."""
    cfg = load_config(config_path)
    if not cfg:
        return
    if args.sql_dir is None and not args.files:
        args.sql_dir = cfg.get("sql_dir")
    if args.output is None:
        args.output = cfg.get("output")
    if args.format is None:
        args.format = cfg.get("format")


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description='Build flow graphs from T-SQL stored procedure files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Steps + graph of one procedure as JSON on stdout
  python build_flow_graph.py procs/WEB_Get_Cliente.sql

  # Mermaid diagram to a file, overriding the label name
  python build_flow_graph.py procs/cliente.sql --name WEB_Seek_Cliente --format mermaid -o out/cliente.mmd

  # Every *.sql under a directory, one output file per procedure
  python build_flow_graph.py --sql-dir procs --output output/flows --summary

Configuration:
  - config.json: sql_dir, output, format (command line wins)
        """
    )

    parser.add_argument(
        'files',
        nargs='*',
        metavar='FILE',
        help='Stored procedure .sql files'
    )

    parser.add_argument(
        '--sql-dir',
        metavar='DIR',
        default=None,
        help='Directory searched recursively for *.sql files'
    )

    parser.add_argument(
        '--name',
        metavar='NAME',
        default=None,
        help='Procedure name used for labels (single file only; default: name from the CREATE PROCEDURE header)'
    )

    parser.add_argument(
        '--format',
        choices=sorted(FORMAT_EXTENSIONS),
        default=None,
        help='Output format (default: json)'
    )

    parser.add_argument(
        '--steps-only',
        action='store_true',
        help='JSON output contains only the parsed steps'
    )

    parser.add_argument(
        '--output',
        '-o',
        metavar='PATH',
        default=None,
        help='Output file (single procedure) or directory (several procedures). Omit to print to stdout.'
    )

    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print a summary of parsed procedures, steps and tables'
    )

    return parser.parse_args(argv)


def render_flow(result, sp_name, output_format="json", steps_only=False):
    """Render one parse_file() result as JSON or Mermaid text."""
    steps = result['steps']
    if output_format == "mermaid":
        return MermaidWriter().render(steps, sp_name)

    if steps_only:
        return json.dumps(steps, indent=2, ensure_ascii=False)

    graph = FlowGraphBuilder().build_graph(steps, sp_name)
    return json.dumps({
        'spName': sp_name,
        'steps': steps,
        'nodes': graph['nodes'],
        'edges': graph['edges'],
        'metadata': summarize_graph(graph),
    }, indent=2, ensure_ascii=False)


def _safe_filename(name):
    return re.sub(r'[^\w.-]', '_', name) or 'procedure'


def add_result(results, name, result):
    """Store *result* under *name*, warning when another file already claimed it."""
    if name in results:
        print(f"[WARN] {name} declared in both {results[name]['file_path']} and {result['file_path']}; keeping the latter")
    results[name] = result


def print_summary(summary):
    """Print summary statistics"""
    print("\n" + "=" * 60)
    print("FLOW SUMMARY")
    print("=" * 60)
    print(f"  {'procedures':20} {summary['total_procedures']:>5}")
    print(f"  {'steps':20} {summary['total_steps']:>5}")
    for step_type, count in sorted(summary['step_types'].items()):
        print(f"    {step_type:18} {count:>5}")
    print(f"  {'unique tables':20} {summary['total_tables']:>5}")
    if summary['errors']:
        print(f"\n  [WARN] {len(summary['errors'])} files could not be read")


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)
    apply_config_defaults(args)
    output_format = args.format or "json"

    if not args.files and not args.sql_dir:
        print("Error: At least one input source required (FILE or --sql-dir)")
        print("Run with --help for usage information")
        sys.exit(1)

    if args.name and (args.sql_dir or len(args.files) > 1):
        print("Error: --name can only be used with a single FILE")
        sys.exit(1)

    if args.sql_dir and not Path(args.sql_dir).is_dir():
        print(f"Error: SQL directory not found: {args.sql_dir}")
        sys.exit(1)

    parser = SQLParser()

    try:
        results = {}
        errors = []
        for file_path in args.files:
            result = parser.parse_file(file_path)
            if 'error' in result:
                errors.append(result['error'])
                continue
            add_result(results, result['procedure_name'], result)

        if args.sql_dir:
            for name, result in parser.parse_directory(args.sql_dir).items():
                add_result(results, name, result)

        if errors:
            for msg in errors:
                print(f"Error: {msg}")
            sys.exit(1)

        single = len(results) == 1 and not args.sql_dir
        for name, result in results.items():
            sp_name = args.name or name
            text = render_flow(result, sp_name, output_format, args.steps_only)

            if not args.output:
                print(text)
                continue

            if single:
                output_path = Path(args.output)
            else:
                output_path = Path(args.output) / f"{_safe_filename(name)}{FORMAT_EXTENSIONS[output_format]}"
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(text + "\n", encoding="utf-8")
            print(f"[OK] {sp_name}: {len(result['steps'])} steps -> {output_path}")

        if args.summary:
            print_summary(parser.get_summary(results))

    except OSError as e:
        print(f"\n[ERROR] {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
