"""
Configuration for the escrow conformance harness.
"""

import os
from dataclasses import dataclass, field
from typing import Dict

REFERENCE_CLIENT = "reference"
CANDIDATE_CLIENT = "candidate"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


@dataclass
class ClientConfig:
    """One escrow implementation reachable over HTTP."""
    name: str
    endpoint: str
    enabled: bool = True
    timeout: float = 30.0


@dataclass
class HarnessConfig:
    """Harness settings: endpoints, vector/result paths and run policy."""
    clients: Dict[str, ClientConfig] = field(default_factory=dict)

    vector_dir: str = "/vectors"
    result_dir: str = "/results"

    stop_on_first_failure: bool = False
    verbose: bool = False
    # Also check every client against the outcome recorded in the vector.
    check_expected: bool = True

    request_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        """Load configuration from environment variables."""
        config = cls()
        config.request_timeout = float(os.environ.get("REQUEST_TIMEOUT", "30"))

        config.clients = {
            REFERENCE_CLIENT: ClientConfig(
                name="Escrow reference",
                endpoint=os.environ.get("REFERENCE_ENDPOINT", "http://localhost:8081"),
                timeout=config.request_timeout,
            ),
            CANDIDATE_CLIENT: ClientConfig(
                name="Escrow candidate",
                endpoint=os.environ.get("CANDIDATE_ENDPOINT", "http://localhost:8082"),
                enabled=not _env_flag("REFERENCE_ONLY"),
                timeout=config.request_timeout,
            ),
        }

        config.vector_dir = os.environ.get("VECTOR_DIR", "/vectors")
        config.result_dir = os.environ.get("RESULT_DIR", "/results")
        config.verbose = _env_flag("VERBOSE")
        config.stop_on_first_failure = _env_flag("STOP_ON_FIRST_FAILURE")
        if os.environ.get("CHECK_EXPECTED") is not None:
            config.check_expected = _env_flag("CHECK_EXPECTED")
        return config

    def get_enabled_clients(self) -> Dict[str, ClientConfig]:
        return {
            name: client
            for name, client in self.clients.items()
            if client.enabled
        }
