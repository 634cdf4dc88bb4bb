from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from proto_schema.models import ProtoFile
from proto_schema.parser.errors import ProtoSyntaxError
from proto_schema.parser.schema_parser import parse_proto_file


def _find_files(paths: List[str]) -> List[str]:
    """Expand directories into the .proto files found under them."""
    results = []
    for path in paths:
        if Path(path).is_dir():
            results.extend(sorted(str(p) for p in Path(path).rglob("*.proto")))
        else:
            results.append(path)
    return results


def _describe(proto_file: ProtoFile) -> None:
    for message in proto_file.message_types:
        print(f"    message {message.name} ({len(message.fields)} field(s))")
        for f in message.fields:
            flags = " [deprecated]" if f.deprecated else ""
            default = f" (default {f.default_value})" if f.default_value is not None else ""
            print(f"      {f.label.value} {f.type_name} {f.name} = {f.tag}{default}{flags}")
    for enum_type in proto_file.enum_types:
        print(f"    enum {enum_type.name} ({len(enum_type.values)} value(s))")
        for value in enum_type.values:
            print(f"      {value.name} = {value.tag}")


def run(paths: List[str], verbose: bool = False) -> List[ProtoFile]:
    """Parse every schema file under ``paths`` and print a summary of each."""
    proto_files = _find_files(paths)
    if not proto_files:
        print(f"No .proto files found under {', '.join(paths)}")
        sys.exit(1)

    parsed: List[ProtoFile] = []
    for pf in proto_files:
        try:
            proto_file = parse_proto_file(pf)
        except (ProtoSyntaxError, OSError, UnicodeDecodeError) as e:
            print(f"FATAL: {pf}: {e}", file=sys.stderr)
            sys.exit(1)

        package = proto_file.package_name or "(none)"
        print(
            f"  Parsed {pf}: package {package}, "
            f"{len(proto_file.dependencies)} import(s), "
            f"{len(proto_file.message_types)} message(s), "
            f"{len(proto_file.enum_types)} enum(s)"
        )
        if verbose:
            _describe(proto_file)
        parsed.append(proto_file)

    return parsed


def main():
    parser = argparse.ArgumentParser(
        description="Parse .proto schema declarations and summarize them",
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Schema files, or directories to scan for .proto files",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="List the fields and values of every declared type",
    )

    args = parser.parse_args()
    run(args.paths, args.verbose)
