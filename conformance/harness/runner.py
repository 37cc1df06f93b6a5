#!/usr/bin/env python3
"""
Escrow conformance runner.

Replays YAML vectors against a reference and a candidate escrow
implementation over HTTP and reports every divergence.
"""

import asyncio
import glob
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp
import click
import yaml

from comparator import ComparisonResult, ResultComparator
from config import CANDIDATE_CLIENT, REFERENCE_CLIENT, ClientConfig, HarnessConfig
from reporter import ConformanceReport, ReportGenerator, SuiteResult, TestResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


class ConformanceClient:
    """HTTP client for one escrow implementation."""

    def __init__(self, config: ClientConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        if self.session:
            await self.session.close()

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        async with self.session.post(f"{self.config.endpoint}{path}", json=payload) as resp:
            return await resp.json()

    async def reset_state(self) -> bool:
        """Reset the client to an empty ledger."""
        try:
            data = await self._post("/state/reset")
            return bool(data.get("success", False))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[{self.config.name}] Reset failed: {e}")
            return False

    async def load_state(self, state: Dict[str, Any]) -> Optional[str]:
        """
        Load a ledger state (accounts, clock, rent).

        Returns the client's state digest on success, None on failure.
        """
        try:
            data = await self._post("/state/load", state)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[{self.config.name}] Load state failed: {e}")
            return None
        if data.get("success"):
            return data.get("state_digest")
        return None

    async def execute_ix(self, instruction: Dict[str, Any]) -> Dict[str, Any]:
        """Execute one escrow instruction against the loaded state."""
        try:
            return await self._post("/ix/execute", instruction)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[{self.config.name}] Execute instruction failed: {e}")
            return {"success": False, "error_code": None, "error": str(e)}


class ConformanceHarness:
    def __init__(self, config: HarnessConfig):
        self.config = config
        self.clients: Dict[str, ConformanceClient] = {}
        self.comparator = ResultComparator(reference_client=REFERENCE_CLIENT)
        self.reporter = ReportGenerator(config.result_dir)

    async def setup(self) -> None:
        for name, client_config in self.config.get_enabled_clients().items():
            client = ConformanceClient(client_config)
            await client.connect()
            self.clients[name] = client
            logger.info(f"Connected to {client_config.name} at {client_config.endpoint}")

    async def teardown(self) -> None:
        for client in self.clients.values():
            await client.close()

    async def reset_all(self) -> bool:
        results = await asyncio.gather(*[c.reset_state() for c in self.clients.values()])
        return all(results)

    async def load_state_all(self, state: Dict[str, Any]) -> Optional[ComparisonResult]:
        """Load the same state everywhere; None if any client refused it."""
        names = list(self.clients.keys())
        digests = await asyncio.gather(*[self.clients[n].load_state(state) for n in names])
        by_client = dict(zip(names, digests))
        failed = [n for n, d in by_client.items() if d is None]
        if failed:
            logger.error(f"Failed to load state in {', '.join(failed)}")
            return None
        return self.comparator.compare_state_digests(by_client, "state_load")

    async def execute_ix_all(self, instruction: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        names = list(self.clients.keys())
        results = await asyncio.gather(*[self.clients[n].execute_ix(instruction) for n in names])
        return dict(zip(names, results))

    async def run_vector(self, vector: Dict[str, Any]) -> TestResult:
        vector_name = vector.get("name", "unknown")
        start_time = time.time()

        def done(passed: bool, **kwargs: Any) -> TestResult:
            return TestResult(
                vector_name=vector_name,
                suite_name="",
                passed=passed,
                execution_time_ms=(time.time() - start_time) * 1000,
                **kwargs,
            )

        if vector.get("runnable") is False:
            return done(True, skipped=True)

        if not await self.reset_all():
            return done(False, error="Failed to reset clients")

        if vector.get("pre_state"):
            loaded = await self.load_state_all(vector["pre_state"])
            if loaded is None:
                return done(False, error="State load failed")
            if loaded.has_divergences:
                return done(False, comparison=loaded, error="State load divergence")

        instruction = vector.get("input", {}).get("instruction")
        if not instruction:
            return done(True)

        results = await self.execute_ix_all(instruction)
        comparison = self.comparator.compare_results(results, vector_name)
        if self.config.check_expected and "expected" in vector:
            comparison = comparison.merge(
                self.comparator.compare_expected(results, vector["expected"], vector_name)
            )
        return done(not comparison.has_divergences, comparison=comparison)

    async def run_suite(self, suite_path: str) -> SuiteResult:
        """Run every vector of one YAML file."""
        suite_name = Path(suite_path).stem
        logger.info(f"Running suite: {suite_name}")
        start_time = time.time()

        with open(suite_path) as f:
            suite = yaml.safe_load(f) or {}

        test_results: List[TestResult] = []
        for vector in suite.get("test_vectors", []):
            try:
                result = await self.run_vector(vector)
            except (aiohttp.ClientError, ValueError) as e:
                logger.exception(f"Error running vector {vector.get('name')}")
                result = TestResult(
                    vector_name=vector.get("name", "unknown"),
                    suite_name="",
                    passed=False,
                    execution_time_ms=0.0,
                    error=str(e),
                )
            result.suite_name = suite_name
            test_results.append(result)

            status = "SKIP" if result.skipped else ("PASS" if result.passed else "FAIL")
            logger.info(f"  [{status}] {result.vector_name}")
            if result.comparison and self.config.verbose:
                for div in result.comparison.divergences:
                    logger.debug(f"      {div.field}: {div.expected!r} != {div.actual!r} ({div.client})")

            if not result.passed and self.config.stop_on_first_failure:
                break

        return SuiteResult(
            suite_name=suite_name,
            execution_time_ms=(time.time() - start_time) * 1000,
            test_results=test_results,
        )

    async def run_all(self, vector_paths: List[str]) -> ConformanceReport:
        start_time = time.time()
        suite_results = []
        for path in vector_paths:
            suite = await self.run_suite(path)
            suite_results.append(suite)
            if suite.failed_tests and self.config.stop_on_first_failure:
                break

        return self.reporter.generate_report(
            suite_results=suite_results,
            clients=list(self.clients.keys()),
            reference_client=self.comparator.reference_client,
            execution_time_ms=(time.time() - start_time) * 1000,
        )


def find_vector_files(vector_dir: str) -> List[str]:
    files: List[str] = []
    for ext in ("yaml", "yml"):
        files.extend(glob.glob(os.path.join(vector_dir, "**", f"*.{ext}"), recursive=True))
    return sorted(files)


@click.command()
@click.option("--vectors", default=None, help="Vectors directory or a single YAML file")
@click.option("--reference-endpoint", default=None, help="Reference implementation URL")
@click.option("--candidate-endpoint", default=None, help="Candidate implementation URL")
@click.option("--result-dir", default=None, help="Directory to write reports into")
@click.option("--reference-only", is_flag=True, help="Run the reference client alone")
@click.option("--no-expected", is_flag=True, help="Skip checks against recorded outcomes")
@click.option("--verbose", is_flag=True, help="Enable verbose output")
@click.option("--stop-on-failure", is_flag=True, help="Stop on first failing vector")
def main(
    vectors: Optional[str],
    reference_endpoint: Optional[str],
    candidate_endpoint: Optional[str],
    result_dir: Optional[str],
    reference_only: bool,
    no_expected: bool,
    verbose: bool,
    stop_on_failure: bool,
) -> None:
    """Run escrow conformance vectors."""
    config = HarnessConfig.from_env()

    if reference_endpoint:
        config.clients[REFERENCE_CLIENT].endpoint = reference_endpoint
    if candidate_endpoint:
        config.clients[CANDIDATE_CLIENT].endpoint = candidate_endpoint
    if reference_only:
        config.clients[CANDIDATE_CLIENT].enabled = False
    if result_dir:
        config.result_dir = result_dir
    if no_expected:
        config.check_expected = False
    if verbose:
        config.verbose = True
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if stop_on_failure:
        config.stop_on_first_failure = True

    vector_dir = vectors or config.vector_dir
    if os.path.isfile(vector_dir):
        vector_files = [vector_dir]
    else:
        vector_files = find_vector_files(vector_dir)

    if not vector_files:
        logger.error(f"No vector files found in {vector_dir}")
        sys.exit(1)

    logger.info(f"Found {len(vector_files)} vector files")

    async def run() -> int:
        harness = ConformanceHarness(config)
        try:
            await harness.setup()
            report = await harness.run_all(vector_files)
            harness.reporter.write_json_report(report)
            harness.reporter.write_summary(report)
            harness.reporter.print_summary(report)
            return 0 if report.total_failed == 0 else 1
        finally:
            await harness.teardown()

    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
