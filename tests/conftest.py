import os
from typing import Any

import pytest

from kaleido.kaleido_ast import ASTNode
from kaleido.kaleido_parser import Parser

# Start coverage in subprocesses spawned by the CLI tests
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


@pytest.fixture  # type: ignore[misc]
def parse_program() -> Any:
    def _parse(source: str, precedence: dict[str, int] | None = None) -> list[ASTNode]:
        return Parser(source, precedence).parse()

    return _parse
