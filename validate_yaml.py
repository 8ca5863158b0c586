#!/usr/bin/env python3
"""Check vehicle registration files against the schema and report every error."""
import argparse
import sys
from pathlib import Path
from typing import List

import yaml
from jsonschema import Draft7Validator

from mileage.schema import format_error, load_schema


def validate_vehicle_file(filepath: Path, schema: dict) -> List[str]:
    """Validate a single vehicle YAML file. Returns list of errors."""
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]
    except OSError as e:
        return [f"Error: {e}"]

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    return [format_error(e) for e in errors]


def collect_files(targets: List[Path]) -> List[Path]:
    """Expand directories to the YAML files they contain."""
    files = []
    for target in targets:
        if target.is_dir():
            files.extend(target.glob("*.yaml"))
            files.extend(target.glob("*.yml"))
        else:
            files.append(target)
    return sorted(files)


def main():
    parser = argparse.ArgumentParser(description="Validate vehicle registration files")
    parser.add_argument(
        "targets",
        nargs="*",
        type=Path,
        default=[Path("vehicles")],
        help="Vehicle files or directories (default: vehicles/)",
    )
    args = parser.parse_args()

    missing = [t for t in args.targets if not t.exists()]
    if missing:
        for target in missing:
            print(f"Error: not found: {target}")
        return 1

    files = collect_files(args.targets)
    if not files:
        print("Warning: No YAML files found")
        return 0

    schema = load_schema()
    failures = 0
    for filepath in files:
        errors = validate_vehicle_file(filepath, schema)
        if errors:
            failures += 1
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
        else:
            print(f"OK: {filepath.name}")

    print(f"\n{len(files) - failures}/{len(files)} files valid")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
