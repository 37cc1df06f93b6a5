"""Consume fixtures and replay them against the escrow model."""

from __future__ import annotations

import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from escrow_spec.state_transition import execute_instruction  # noqa: E402
from fixtures_io import (  # noqa: E402
    instruction_data_to_json,
    instruction_from_json,
    state_from_json,
    state_to_json,
)


def _check_state_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())

    for case in data.get("cases", []):
        pre_state = state_from_json(case["pre_state"])
        ix, signers = instruction_from_json(case["instruction"])
        post_state, result = execute_instruction(pre_state, ix, signers)

        expected = case["expected"]
        if result.ok != expected["ok"]:
            failures.append(f"{path.name}:{case['name']}: ok_mismatch")
            continue

        actual_err = result.error.code.name if result.error else None
        if actual_err != expected["error"]:
            failures.append(
                f"{path.name}:{case['name']}: error_mismatch ({actual_err} != {expected['error']})"
            )
            continue

        actual_digest = compute_state_digest(state_to_json(post_state))
        if actual_digest != compute_state_digest(expected["post_state"]):
            failures.append(f"{path.name}:{case['name']}: state_digest_mismatch")

    return failures


def _check_wire_vectors(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())
    for vec in data.get("vectors", []):
        decoded = instruction_data_to_json(bytes.fromhex(vec["wire_hex"]))
        if decoded != vec["decoded"]:
            failures.append(f"{vec['name']}: wire_mismatch")
    return failures


def main() -> None:
    fixtures = Path(sys.argv[1]) if len(sys.argv) > 1 else ROOT / "fixtures"
    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")

    failures: list[str] = []
    checked = 0
    for path in sorted(fixtures.rglob("*.json")):
        if path.name == "wire_format.json":
            failures.extend(_check_wire_vectors(path))
        else:
            failures.extend(_check_state_cases(path))
        checked += 1

    if failures:
        for f in failures:
            print("FAIL", f)
        raise SystemExit(1)

    print(f"All fixtures passed ({checked} files)")


if __name__ == "__main__":
    main()
