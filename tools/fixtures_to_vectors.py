#!/usr/bin/env python3
"""Convert escrow fixtures into client-consumable YAML vectors.

Each fixture case becomes one vector carrying the pre-state, the instruction
(with its wire hex) and the expected outcome: success flag, numeric error code
and the digest of the post-state.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.errors import ErrorCode  # noqa: E402
from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from yaml_dump import write_yaml  # noqa: E402

# Fixture folders are grouped by instruction; vectors mirror the layout under
# the execution tree.
MAPPING = {
    "escrow": "execution/escrow",
    "runtime": "execution/runtime",
    "scenarios": "execution/scenarios",
}


def map_dest(rel: Path) -> Path:
    if not rel.parts:
        return Path("unmapped")
    mapped = MAPPING.get(rel.parts[0])
    if not mapped:
        return Path("unmapped") / rel
    return Path(mapped) / Path(*rel.parts[1:])


def _map_error_code(name: str | None) -> int | None:
    if not name:
        return None
    try:
        return int(ErrorCode[name])
    except KeyError:
        return int(ErrorCode.UNKNOWN)


def _case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case.get("expected", {})
    post_state = expected.get("post_state")
    instruction = case.get("instruction", {})
    vec: dict[str, Any] = {
        "name": case.get("name", ""),
        "description": case.get("description", ""),
        "pre_state": case.get("pre_state"),
    }
    if case.get("runnable") is False:
        vec["runnable"] = False
    vec["input"] = {
        "kind": "ix",
        "wire_hex": instruction.get("data", ""),
        "instruction": instruction,
    }
    vec["expected"] = {
        "success": bool(expected.get("ok", False)),
        "error_code": _map_error_code(expected.get("error")),
        "state_digest": compute_state_digest(post_state) if post_state else "",
        "post_state": post_state,
    }
    return vec


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert fixtures to vectors")
    parser.add_argument("--fixtures", default=str(ROOT / "fixtures"))
    parser.add_argument("--vectors", default=str(ROOT / "vectors"))
    args = parser.parse_args()

    fixtures = Path(args.fixtures).resolve()
    vectors = Path(args.vectors).resolve()
    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")
    vectors.mkdir(parents=True, exist_ok=True)

    old_files = {p.resolve() for p in vectors.rglob("*.yaml")}
    written: set[Path] = set()

    for path in sorted(fixtures.rglob("*.json")):
        data = json.loads(path.read_text())
        cases = data.get("cases") if isinstance(data, dict) else None
        if not isinstance(cases, list):
            print(f"skipping {path}: no cases")
            continue
        dest = (vectors / map_dest(path.relative_to(fixtures))).with_suffix(".yaml")
        dest.parent.mkdir(parents=True, exist_ok=True)
        write_yaml(dest, {"test_vectors": [_case_to_vector(c) for c in cases]})
        written.add(dest.resolve())

    removed = 0
    for old in sorted(old_files - written):
        old.unlink()
        removed += 1
    for d in sorted(vectors.rglob("*"), reverse=True):
        if d.is_dir() and not any(d.iterdir()):
            d.rmdir()

    print(f"Written {len(written)} vector files into {vectors}")
    if removed:
        print(f"Removed {removed} stale files")


if __name__ == "__main__":
    main()
