"""Shared fixtures for the flowtext test suite."""

import asyncio
from unittest.mock import patch

import pytest

from flowtext.runtime import loader


class FakePackageManager:
    def __init__(self, calls, fail_install=None, delay=0.0):
        self.calls = calls
        self.fail_install = fail_install
        self.delay = delay

    async def install(self, name):
        self.calls["install"] += 1
        self.calls["installed"].append(name)
        await asyncio.sleep(self.delay)
        if self.fail_install is not None:
            raise self.fail_install


class FakeRuntime:
    """Stands in for IsolatedRuntime; ``run`` returns a canned value."""

    def __init__(self, calls, fail_package_manager=None, fail_install=None, delay=0.0,
                 run_result="st=>start: start\ncond=>condition: while x != y"):
        self.calls = calls
        self.fail_package_manager = fail_package_manager
        self.fail_install = fail_install
        self.delay = delay
        self.run_result = run_result
        self.scripts = []

    async def load_package_manager(self):
        self.calls["package_manager"] += 1
        await asyncio.sleep(self.delay)
        if self.fail_package_manager is not None:
            raise self.fail_package_manager
        return FakePackageManager(self.calls, self.fail_install, self.delay)

    def run(self, script):
        self.scripts.append(script)
        if isinstance(self.run_result, BaseException):
            raise self.run_result
        return self.run_result


class FakeLoader:
    """Runtime loader that counts each step and can be told to fail once."""

    def __init__(self, delay=0.01):
        self.delay = delay
        self.calls = {"runtime": 0, "package_manager": 0, "install": 0, "installed": []}
        self.fail_runtime = None
        self.fail_package_manager = None
        self.fail_install = None
        self.run_result = "st=>start: start\ncond=>condition: while x != y"
        self.runtimes = []

    async def __call__(self):
        self.calls["runtime"] += 1
        await asyncio.sleep(self.delay)
        if self.fail_runtime is not None:
            raise self.fail_runtime
        runtime = FakeRuntime(
            self.calls,
            fail_package_manager=self.fail_package_manager,
            fail_install=self.fail_install,
            delay=self.delay,
            run_result=self.run_result,
        )
        self.runtimes.append(runtime)
        return runtime

    def heal(self):
        self.fail_runtime = None
        self.fail_package_manager = None
        self.fail_install = None


@pytest.fixture
def fake_loader():
    return FakeLoader()


@pytest.fixture
def resource(fake_loader):
    return loader.SingletonAsyncResource(runtime_loader=fake_loader, package_name="pyflowchart")


@pytest.fixture
def gcd_snippet():
    return (
        "x = 5\n"
        "y = 10\n"
        "while x != y:\n"
        "    if x > y:\n"
        "        x = x - y\n"
        "    else:\n"
        "        y = y - x\n"
    )


@pytest.fixture(autouse=True)
def fresh_default_resource():
    """Make sure no test leaks the process-wide resource into another."""
    loader.reset_resource()
    yield
    loader.reset_resource()


@pytest.fixture
def mock_config(tmp_path):
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "package_name": "pyflowchart",
        "runtime_dir": str(tmp_path / "runtime"),
        "base_python": None,
        "pip_index_url": None,
        "install_max_retries": 2,
        "install_timeout": 30,
        "run_timeout": 30,
        "log_level": "DEBUG",
        "log_path": None,
        "output_path": str(tmp_path / "output" / "flowchart.txt"),
    }
    with patch("flowtext.config._config", test_config):
        yield test_config
