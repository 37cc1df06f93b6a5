"""
Outcome comparison for escrow conformance runs.

An instruction outcome is the triple (success, error_code, state_digest).
Clients are compared against the reference client and, optionally, against
the outcome recorded in the vector itself.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import REFERENCE_CLIENT

EXPECTED_SOURCE = "vector"


@dataclass
class Divergence:
    """One field on which a client disagrees with its reference."""
    field: str
    expected: Any
    actual: Any
    client: str
    reference_client: str
    vector_name: str
    details: Optional[str] = None


@dataclass
class ComparisonResult:
    success: bool
    divergences: List[Divergence]
    clients_compared: List[str]

    @property
    def has_divergences(self) -> bool:
        return len(self.divergences) > 0

    def merge(self, other: "ComparisonResult") -> "ComparisonResult":
        clients = list(dict.fromkeys(self.clients_compared + other.clients_compared))
        divergences = self.divergences + other.divergences
        return ComparisonResult(
            success=not divergences,
            divergences=divergences,
            clients_compared=clients,
        )


def _fmt_code(code: Optional[int]) -> str:
    return "none" if code is None else f"0x{code:04x}"


class ResultComparator:
    """Compares instruction outcomes across escrow implementations."""

    def __init__(self, reference_client: str = REFERENCE_CLIENT):
        self.reference_client = reference_client

    def compare_results(
        self,
        results: Dict[str, Dict[str, Any]],
        vector_name: str,
    ) -> ComparisonResult:
        """
        Compare every client's outcome with the reference client's.

        Args:
            results: client name -> response of /ix/execute
            vector_name: name of the vector being run
        """
        clients = list(results.keys())
        if len(clients) < 2:
            return ComparisonResult(success=True, divergences=[], clients_compared=clients)

        if self.reference_client not in results:
            raise ValueError(f"Reference client '{self.reference_client}' not in results")
        reference = results[self.reference_client]

        divergences: List[Divergence] = []
        for client, result in results.items():
            if client == self.reference_client:
                continue
            divergences.extend(self._compare_single(
                reference=reference,
                actual=result,
                client=client,
                reference_name=self.reference_client,
                vector_name=vector_name,
            ))

        return ComparisonResult(
            success=not divergences,
            divergences=divergences,
            clients_compared=clients,
        )

    def compare_expected(
        self,
        results: Dict[str, Dict[str, Any]],
        expected: Dict[str, Any],
        vector_name: str,
    ) -> ComparisonResult:
        """Check every client against the outcome recorded in the vector."""
        divergences: List[Divergence] = []
        for client, result in results.items():
            divergences.extend(self._compare_single(
                reference=expected,
                actual=result,
                client=client,
                reference_name=EXPECTED_SOURCE,
                vector_name=vector_name,
            ))
        return ComparisonResult(
            success=not divergences,
            divergences=divergences,
            clients_compared=list(results.keys()),
        )

    def _compare_single(
        self,
        reference: Dict[str, Any],
        actual: Dict[str, Any],
        client: str,
        reference_name: str,
        vector_name: str,
    ) -> List[Divergence]:
        divergences = []

        def diverge(field: str, exp: Any, act: Any, details: Optional[str] = None) -> None:
            divergences.append(Divergence(
                field=field,
                expected=exp,
                actual=act,
                client=client,
                reference_client=reference_name,
                vector_name=vector_name,
                details=details,
            ))

        ref_success = bool(reference.get("success", False))
        act_success = bool(actual.get("success", False))
        if ref_success != act_success:
            diverge("success", ref_success, act_success)

        # A successful instruction carries no error code.
        ref_error = reference.get("error_code")
        act_error = actual.get("error_code")
        if not ref_success and ref_error != act_error:
            diverge(
                "error_code", ref_error, act_error,
                f"Error code mismatch: expected {_fmt_code(ref_error)}, got {_fmt_code(act_error)}",
            )

        ref_digest = reference.get("state_digest")
        act_digest = actual.get("state_digest")
        if ref_digest and act_digest and ref_digest != act_digest:
            diverge("state_digest", ref_digest, act_digest, "State digest mismatch after execution")

        return divergences

    def compare_state_digests(
        self,
        digests: Dict[str, Optional[str]],
        vector_name: str,
    ) -> ComparisonResult:
        """Compare the digests clients report after loading the same state."""
        clients = list(digests.keys())
        divergences: List[Divergence] = []
        reference_digest = digests.get(self.reference_client)
        if reference_digest is None:
            raise ValueError(f"Reference client '{self.reference_client}' not in digests")

        for client, digest in digests.items():
            if client != self.reference_client and digest != reference_digest:
                divergences.append(Divergence(
                    field="state_digest",
                    expected=reference_digest,
                    actual=digest,
                    client=client,
                    reference_client=self.reference_client,
                    vector_name=vector_name,
                    details="State digest mismatch after load",
                ))

        return ComparisonResult(
            success=not divergences,
            divergences=divergences,
            clients_compared=clients,
        )
