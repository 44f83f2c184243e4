from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import pytest


@pytest.fixture(scope="session")
def _csim_output_root(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("csim_out")


@pytest.fixture
def outdir(_csim_output_root: Path, request: pytest.FixtureRequest) -> Path:
    case_dir = _csim_output_root / request.node.name
    case_dir.mkdir(parents=True, exist_ok=True)
    return case_dir


@pytest.fixture
def write_trace(outdir: Path) -> Callable[[Iterable[str], str], str]:
    def _write(lines: Iterable[str], name: str = "case.trace") -> str:
        path = outdir / name
        path.write_text("".join(f"{line}\n" for line in lines))
        return str(path)
    return _write
