#!/usr/bin/env python3
"""
Export, create or list whole GfArch archives.

Usage:
    # Export all entries to a directory
    python scripts/archive_io.py export level.gfa output_dir/

    # Create an archive from every file in a directory
    python scripts/archive_io.py import entries_dir/ output.gfa

    # Pick version, compression and a fixed GFCP offset
    python scripts/archive_io.py import entries_dir/ output.gfa --version 2.0 --compression lz10 --gfcp-offset 0x2000

    # List entries
    python scripts/archive_io.py list level.gfa
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

sys.path.insert(0, str(Path(__file__).parent.parent))
from gfarch import (
    CompressionScheme,
    FormatVersion,
    GfArchive,
    LayoutOffset,
    load_archive,
    save_archive,
)
from gfarch.model import DEFAULT_LAYOUT


def safe_output_path(output_dir: Path, name: str) -> Path:
    target = (output_dir / name).resolve()
    if output_dir.resolve() not in target.parents:
        raise ValueError(f"Entry name escapes output directory: {name!r}")
    return target


def export_archive(input_path: Path, output_dir: Path) -> int:
    output_dir.mkdir(parents=True, exist_ok=True)

    archive = load_archive(input_path)
    for entry in archive:
        target = safe_output_path(output_dir, entry.filename)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(entry.contents)

    print(f"Exported {len(archive)} entries to {output_dir}/")
    return len(archive)


def create_archive(
    input_dir: Path,
    output_file: Path,
    version: FormatVersion = FormatVersion.V3_1,
    compression: CompressionScheme = CompressionScheme.BPE,
    gfcp_offset: Optional[int] = None,
) -> int:
    files = sorted(f for f in input_dir.iterdir() if f.is_file())

    if not files:
        print("Warning: No files found in directory")
        return 0

    layout = DEFAULT_LAYOUT if gfcp_offset is None else LayoutOffset.custom(gfcp_offset)
    archive = GfArchive(version=version, compression=compression, layout=layout)
    for file in files:
        archive.add(file.name, file.read_bytes())

    size = save_archive(archive, output_file)
    print(f"Created {output_file.name} with {len(archive)} entries ({size} bytes)")
    return len(archive)


def list_archive(input_path: Path) -> List[Tuple[str, int]]:
    archive = load_archive(input_path)
    print(
        f"{input_path.name}: version {str(archive.version)}, "
        f"{archive.compression.name}, layout {archive.layout}"
    )
    listing = [(entry.filename, len(entry.contents)) for entry in archive]
    for name, size in listing:
        print(f"  {size:>10}  {name}")
    return listing


def main():
    parser = argparse.ArgumentParser(description="Export, create or list GfArch archives.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser(
        "export", help="Export all entries to directory"
    )
    export_parser.add_argument("input", help="Input GfArch archive")
    export_parser.add_argument("output", help="Output directory")

    import_parser = subparsers.add_parser("import", help="Create archive from directory")
    import_parser.add_argument("input_dir", help="Input directory with files to pack")
    import_parser.add_argument("output_file", help="Output archive")
    import_parser.add_argument(
        "--version",
        default="3.1",
        choices=["2.0", "3.0", "3.1"],
        help="Archive version",
    )
    import_parser.add_argument(
        "--compression",
        default="bpe",
        choices=["bpe", "lz10", "lz77"],
        help="Payload compression",
    )
    import_parser.add_argument(
        "--gfcp-offset",
        type=lambda s: int(s, 0),
        help="Fixed compression header offset, e.g. 0x2000 (default: right after file info)",
    )

    list_parser = subparsers.add_parser("list", help="List entries")
    list_parser.add_argument("input", help="Input GfArch archive")

    args = parser.parse_args()

    try:
        if args.command == "export":
            input_path = Path(args.input)
            if not input_path.exists():
                print(f"Error: Input file not found: {input_path}")
                sys.exit(1)

            export_archive(input_path, Path(args.output))

        elif args.command == "import":
            input_dir = Path(args.input_dir)
            if not input_dir.exists():
                print(f"Error: Input directory not found: {input_dir}")
                sys.exit(1)

            create_archive(
                input_dir,
                Path(args.output_file),
                FormatVersion.from_string(args.version),
                CompressionScheme.from_string(args.compression),
                args.gfcp_offset,
            )

        elif args.command == "list":
            input_path = Path(args.input)
            if not input_path.exists():
                print(f"Error: Input file not found: {input_path}")
                sys.exit(1)

            list_archive(input_path)

    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
