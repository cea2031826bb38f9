"""
1) Load people and relationships from a JSON or GEDCOM file.
2) Lay the family out as a collision-free tree.
3) Optionally relate two people and highlight the path between them.
4) Save the drawing (PNG/SVG/PDF via matplotlib, DOT/GV via pydot) or show it.
"""

import argparse
import json
import logging
from pathlib import Path
import sys

import matplotlib

from config import resolve_config
from parsing import load_family


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Draw a family tree and relate people in it.")
    parser.add_argument("people", type=Path, help="people .json or .ged file")
    parser.add_argument("--relationships", type=Path, help="separate relationships .json file")
    parser.add_argument("--config", type=Path, help="JSON file of layout setting overrides")
    parser.add_argument("--output", "-o", type=Path, help="write to .png/.svg/.pdf/.dot instead of showing")
    parser.add_argument("--select", metavar="ID", help="person to select")
    parser.add_argument("--compare", nargs=2, metavar=("A", "B"), help="print how A and B are related")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        overrides = json.loads(args.config.read_text(encoding="utf-8")) if args.config else None
        config = resolve_config(overrides)
        print(f"Loading family: {args.people}")
        people, relationships = load_family(args.people, args.relationships)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"  Found {len(people)} people and {len(relationships)} relationships")

    if args.output and args.output.suffix.lower() in (".dot", ".gv"):
        from pipeline import build_scene
        from plotting import write_dot

        scene = build_scene(people, relationships, config)
        write_dot(scene, args.output, config)
        print(f"Graph saved to {args.output}")
        return 0

    if args.output:
        matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from plotting import create_view

    fig = plt.figure(figsize=(20, 16))
    view = create_view(fig, people, relationships, config)
    print(f"Laid out {len(view.scene.nodes)} people")

    if args.select:
        view.select(args.select)
    if args.compare:
        a, b = args.compare
        view.select(a)
        result = view.compare(b)
        print(f"{a} -> {b}: {result.label}")
        if result.found:
            print("  Path: " + " -> ".join(result.path))
    view.fit()

    if args.output:
        fig.savefig(args.output, dpi=150, bbox_inches="tight")
        print(f"Graph saved to {args.output}")
    else:
        plt.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
