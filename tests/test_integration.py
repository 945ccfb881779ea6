"""End-to-end: real runtime, real pyflowchart install.

Needs network access and creates a virtual environment, so it only runs
when FLOWTEXT_INTEGRATION=1.
"""

import asyncio
import os

import pytest

from flowtext.errors import AnalysisError
from flowtext.invoker import analyze
from flowtext.runtime.interpreter import load_runtime
from flowtext.runtime.loader import SingletonAsyncResource

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.environ.get("FLOWTEXT_INTEGRATION") != "1",
        reason="set FLOWTEXT_INTEGRATION=1 to build a real runtime",
    ),
]


@pytest.fixture(scope="module")
def real_resource(tmp_path_factory):
    runtime_dir = tmp_path_factory.mktemp("runtime") / "venv"

    async def _loader():
        return await load_runtime(runtime_dir=runtime_dir)

    return SingletonAsyncResource(runtime_loader=_loader, package_name="pyflowchart")


def test_gcd_flowchart(real_resource, gcd_snippet):
    result = asyncio.run(analyze(gcd_snippet, real_resource))

    assert result.strip()
    assert "condition" in result  # while / if decision nodes


def test_nested_triple_quotes(real_resource):
    result = asyncio.run(analyze('print("""nested""")\n', real_resource))

    assert result.strip()


def test_invalid_code_raises_analysis_error(real_resource):
    with pytest.raises(AnalysisError):
        asyncio.run(analyze("while:\n", real_resource))
