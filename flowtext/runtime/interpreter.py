"""Isolated interpreter used to run the flowchart analysis.

The runtime is a dedicated virtual environment. ``load_runtime`` creates it
(or reuses an existing one), ``IsolatedRuntime.load_package_manager`` makes
sure pip is present, and ``PackageManager.install`` installs packages into
it. Scripts are executed with ``IsolatedRuntime.run``, which returns the
value of the script's final expression.

Scripts run unsandboxed with the privileges of the current user.
"""

import asyncio
import json
import logging
import os
import subprocess
import sys
import threading
from pathlib import Path
from typing import Optional

from flowtext.config import get_config
from flowtext.errors import (
    ExecutionError,
    PackageInstallError,
    PackageManagerLoadError,
    RuntimeLoadError,
)
from flowtext.utils.retry import install_with_retry

logger = logging.getLogger(__name__)

DRIVER_PATH = Path(__file__).resolve().parent / "driver.py"


def _last_line(text: str) -> str:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    return lines[-1] if lines else ""


def _child_env() -> dict:
    env = dict(os.environ)
    env["PYTHONIOENCODING"] = "utf-8"
    env["PIP_DISABLE_PIP_VERSION_CHECK"] = "1"
    env.pop("PYTHONPATH", None)
    env.pop("PYTHONHOME", None)
    return env


async def _terminate(proc) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


async def _exec(*args: str, timeout: Optional[float] = None) -> tuple[int, str, str]:
    """Run a subprocess to completion and return (returncode, stdout, stderr).

    The child is killed if the wait times out or the calling task is cancelled.
    """
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=_child_env(),
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        await _terminate(proc)
        raise subprocess.TimeoutExpired(list(args), timeout)
    except BaseException:
        await _terminate(proc)
        raise
    return (
        proc.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def venv_python(venv_dir: Path) -> Path:
    """Return the interpreter path inside a virtual environment."""
    if sys.platform == "win32":
        return venv_dir / "Scripts" / "python.exe"
    return venv_dir / "bin" / "python"


class PackageManager:
    """pip inside an isolated runtime."""

    def __init__(self, runtime: "IsolatedRuntime", version: str = ""):
        self.runtime = runtime
        self.version = version

    async def _install_once(self, name: str) -> None:
        config = get_config()
        args = [str(self.runtime.python), "-m", "pip", "install", "--quiet", name]
        index_url = config.get("pip_index_url")
        if index_url:
            args[4:4] = ["--index-url", index_url]

        try:
            code, stdout, stderr = await _exec(*args, timeout=config.get("install_timeout", 600))
        except subprocess.TimeoutExpired as exc:
            raise PackageInstallError(f"Installing {name} timed out") from exc
        if code != 0:
            detail = _last_line(stderr) or _last_line(stdout) or f"pip exited with status {code}"
            logger.debug("pip install %s failed (exit %d):\n%s", name, code, stderr.rstrip())
            raise PackageInstallError(f"Could not install {name}: {detail}", output=stderr)

    async def install(self, name: str) -> None:
        """Install ``name`` into the runtime, retrying transient failures."""
        retries = get_config().get("install_max_retries", 2)
        logger.info("Installing %s into %s", name, self.runtime.root)
        await install_with_retry(self._install_once, name, retries=retries)
        logger.info("%s installed successfully.", name)


class IsolatedRuntime:
    """A ready-to-use interpreter in its own virtual environment."""

    def __init__(self, root: Path, python: Path, version: str = ""):
        self.root = root
        self.python = python
        self.version = version
        self._run_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<IsolatedRuntime {self.python} ({self.version})>"

    async def load_package_manager(self) -> PackageManager:
        """Return pip for this runtime, bootstrapping it with ensurepip if missing."""
        python = str(self.python)
        try:
            code, stdout, _ = await _exec(python, "-m", "pip", "--version", timeout=120)
            if code != 0:
                logger.info("pip missing from %s, bootstrapping with ensurepip", self.root)
                code, _, stderr = await _exec(python, "-m", "ensurepip", "--upgrade", timeout=300)
                if code != 0:
                    raise PackageManagerLoadError(
                        f"ensurepip failed: {_last_line(stderr) or f'exit status {code}'}"
                    )
                code, stdout, stderr = await _exec(python, "-m", "pip", "--version", timeout=120)
                if code != 0:
                    raise PackageManagerLoadError(f"pip unavailable: {_last_line(stderr)}")
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise PackageManagerLoadError(f"Could not start pip in {self.root}: {exc}") from exc
        return PackageManager(self, version=stdout.strip())

    def run(self, script: str) -> Optional[str]:
        """Execute ``script`` and return the str of its final expression.

        Returns None when the script does not end with an expression. Calls
        on the same runtime are serialized.
        """
        timeout = get_config().get("run_timeout", 60)
        with self._run_lock:
            try:
                proc = subprocess.run(
                    [str(self.python), "-I", "-X", "utf8", str(DRIVER_PATH)],
                    input=script,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    timeout=timeout,
                    env=_child_env(),
                )
            except subprocess.TimeoutExpired as exc:
                raise ExecutionError(f"Script did not finish within {timeout}s") from exc
            except OSError as exc:
                raise ExecutionError(f"Could not start {self.python}: {exc}") from exc

        try:
            result = json.loads(proc.stdout)
        except json.JSONDecodeError as exc:
            detail = _last_line(proc.stderr) or f"exit status {proc.returncode}"
            raise ExecutionError(f"Interpreter crashed: {detail}", traceback=proc.stderr) from exc

        if result.get("output"):
            logger.debug("Script output:\n%s", result["output"].rstrip())
        if not result.get("ok"):
            raise ExecutionError(result.get("error", "unknown error"), traceback=result.get("traceback"))
        return result.get("value")


async def load_runtime(runtime_dir=None, base_python=None) -> IsolatedRuntime:
    """Create or reuse the runtime virtual environment and check that it starts."""
    config = get_config()
    root = Path(runtime_dir or config.get("runtime_dir") or "~/.cache/flowtext/runtime").expanduser()
    base = base_python or config.get("base_python") or sys.executable
    python = venv_python(root)

    try:
        if not python.exists():
            logger.info("Creating runtime at %s", root)
            root.parent.mkdir(parents=True, exist_ok=True)
            code, _, stderr = await _exec(str(base), "-m", "venv", str(root), timeout=300)
            if code != 0:
                raise RuntimeLoadError(
                    f"Could not create virtual environment at {root}: "
                    f"{_last_line(stderr) or f'exit status {code}'}"
                )
        code, stdout, stderr = await _exec(
            str(python), "-c", "import sys; print(sys.version.split()[0])", timeout=60
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise RuntimeLoadError(f"Could not start interpreter at {python}: {exc}") from exc

    if code != 0:
        raise RuntimeLoadError(f"Interpreter at {python} failed: {_last_line(stderr)}")
    version = stdout.strip()
    logger.info("Runtime ready: Python %s at %s", version, root)
    return IsolatedRuntime(root, python, version=version)
