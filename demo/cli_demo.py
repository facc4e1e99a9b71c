#!/usr/bin/env python3
"""
Interactive CLI demo for the project resolver.

Loads a project list (JSON array of {"key", "name"} or CSV with key,name
columns), syncs the index, then resolves queries given on the command line
or typed interactively.

    PYTHONPATH=src python demo/cli_demo.py --projects projects.json aitech "AI TECH"
"""
import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import List

from project_resolver import ProjectResolverApp, ProjectRef, load_config_from_env


def load_projects(path: str) -> List[ProjectRef]:
    """Read projects from a .json or .csv file."""
    file_path = Path(path)
    if file_path.suffix.lower() == ".csv":
        with open(file_path, newline="", encoding="utf-8") as f:
            return [
                ProjectRef(key=row["key"].strip(), name=row["name"].strip())
                for row in csv.DictReader(f)
                if row.get("key")
            ]

    with open(file_path, encoding="utf-8") as f:
        data = json.load(f)
    return [ProjectRef(key=item["key"], name=item["name"]) for item in data]


def print_results(query: str, results) -> None:
    print(f"\n🔎 Query: {query}")
    if not results:
        print("   (no matches)")
    for result in results:
        print(f"   {result.score:.4f}  {result.key:<16} {result.name}")
    print("-" * 60)


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve project keys from free text")
    parser.add_argument("queries", nargs="*", help="Queries to resolve (interactive if omitted)")
    parser.add_argument("--projects", help="JSON or CSV file with key/name pairs to sync")
    parser.add_argument("--force-rebuild", action="store_true", help="Re-embed every project")
    parser.add_argument("--limit", type=int, default=None, help="Maximum results per query")
    parser.add_argument("--threshold", type=float, default=None, help="Minimum score")
    parser.add_argument("--clear", action="store_true", help="Clear the index and exit")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    app = ProjectResolverApp(load_config_from_env())
    app.initialize()

    try:
        if args.clear:
            app.clear()
            print("Index cleared.")
            return 0

        if args.projects:
            report = app.sync_index(load_projects(args.projects), force_rebuild=args.force_rebuild)
            print(f"Index sync: {report.to_dict()}")

        if args.queries:
            for query in args.queries:
                print_results(query, app.resolve(query, limit=args.limit, threshold=args.threshold))
            return 0

        print("Type a project name or key ('quit' to exit, '*' lists all).")
        while True:
            try:
                query = input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if query.lower() in {"quit", "exit"}:
                break
            print_results(query, app.resolve(query, limit=args.limit, threshold=args.threshold))
        return 0
    finally:
        app.close()


if __name__ == "__main__":
    sys.exit(main())
