#!/usr/bin/env python3
"""
Export or replace a single entry of a GfArch archive.

Usage:
    # Export single entry
    python scripts/entry_io.py export level.gfa sea_turtle_01.brres turtle.brres

    # Replace single entry (overwrites archive)
    python scripts/entry_io.py import level.gfa sea_turtle_01.brres modified.brres

    # Replace single entry with separate output
    python scripts/entry_io.py import level.gfa sea_turtle_01.brres modified.brres -o new.gfa
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))
from gfarch import load_archive, save_archive


def export_entry(archive_path: Path, name: str, output_path: Path) -> None:
    archive = load_archive(archive_path)

    data = archive.get(name)
    if data is None:
        raise ValueError(f"Entry {name!r} not found in {archive_path.name}")

    output_path.write_bytes(data)
    print(f"Exported {name} to {output_path.name}")


def import_entry(
    archive_path: Path,
    name: str,
    input_path: Path,
    output_path: Optional[Path] = None,
) -> None:
    if output_path is None:
        output_path = archive_path

    archive = load_archive(archive_path)

    if name not in archive:
        raise ValueError(f"Entry {name!r} not found in {archive_path.name}")

    archive.replace(name, input_path.read_bytes())
    save_archive(archive, output_path)
    print(f"Imported {input_path.name} as {name}, saved to {output_path.name}")


def main():
    parser = argparse.ArgumentParser(
        description="Export or replace a single entry of a GfArch archive."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Export a single entry")
    export_parser.add_argument("archive", help="GfArch archive")
    export_parser.add_argument("name", help="Entry filename")
    export_parser.add_argument("output", help="Output file path")

    import_parser = subparsers.add_parser("import", help="Replace a single entry")
    import_parser.add_argument("archive", help="GfArch archive")
    import_parser.add_argument("name", help="Entry filename to replace")
    import_parser.add_argument("input", help="Input file to import")
    import_parser.add_argument(
        "--output",
        "-o",
        help="Output file (defaults to overwriting input archive)",
    )

    args = parser.parse_args()

    archive_path = Path(args.archive)
    if not archive_path.exists():
        print(f"Error: Archive not found: {archive_path}")
        sys.exit(1)

    try:
        if args.command == "export":
            export_entry(archive_path, args.name, Path(args.output))

        elif args.command == "import":
            input_path = Path(args.input)
            if not input_path.exists():
                print(f"Error: Input file not found: {input_path}")
                sys.exit(1)

            output_path = Path(args.output) if args.output else None
            import_entry(archive_path, args.name, input_path, output_path)

    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
