"""Pytest hooks and fixtures that double as fixture generators (EEST-style)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Collection

import pytest

from escrow_spec.state_transition import TransitionResult, execute_instruction
from escrow_spec.types import Instruction, LedgerState
from tools.fixtures_io import instruction_data_to_json, instruction_to_json, state_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_WIRE_VECTORS: list[dict[str, Any]] = []

StateTestGroup = Callable[..., tuple[LedgerState, TransitionResult]]


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


@pytest.fixture
def state_test_group() -> StateTestGroup:
    """Execute an instruction, record the case under `rel_path`, return the outcome."""

    def _state_test_group(
        rel_path: str,
        name: str,
        pre_state: LedgerState,
        ix: Instruction,
        signers: Collection[bytes] = (),
    ) -> tuple[LedgerState, TransitionResult]:
        pre_json = state_to_json(pre_state)
        post_state, result = execute_instruction(pre_state, ix, signers)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": pre_json,
                "instruction": instruction_to_json(ix, list(signers)),
                "expected": {
                    "ok": result.ok,
                    "error": result.error.code.name if result.error else None,
                    "post_state": state_to_json(post_state),
                },
            }
        )
        return post_state, result

    return _state_test_group


@pytest.fixture
def wire_vector() -> Callable[[str, bytes], None]:
    """Collect an instruction-data vector."""

    def _wire_vector(name: str, data: bytes) -> None:
        _WIRE_VECTORS.append(
            {"name": name, "wire_hex": data.hex(), "decoded": instruction_data_to_json(data)}
        )

    return _wire_vector


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))

    if _WIRE_VECTORS:
        (out / "wire_format.json").write_text(
            json.dumps({"vectors": _WIRE_VECTORS}, indent=2)
        )
