"""Entry point: reads a snippet, generates its flowchart, optionally saves it."""

import asyncio
import sys
from pathlib import Path

from flowtext.errors import FlowtextError
from flowtext.invoker import analyze
from flowtext.logging_utils import setup_logging
from flowtext.runtime.loader import get_resource
from flowtext.utils.formatter import write_flowchart

EXAMPLE_SNIPPET = """\
x = 5
y = 10
while x != y:
    if x > y:
        x = x - y
    else:
        y = y - x

assert x == y
print(x)
"""

USAGE = "usage: flowtext [FILE] [--example] [--output PATH] [--preload]"


def _status(message: str) -> None:
    print(f"[flowtext] {message}", file=sys.stderr)


def _pop_option(args: list[str], flag: str) -> str | None:
    """Remove ``flag VALUE`` from args and return VALUE (None if absent)."""
    if flag not in args:
        return None
    index = args.index(flag)
    try:
        value = args[index + 1]
    except IndexError:
        raise ValueError(f"{flag} needs a value.")
    del args[index:index + 2]
    return value


async def _preload() -> None:
    await get_resource().preload()


def run(snippet: str, output: str | None = None) -> str:
    """Generate the flowchart for ``snippet``, print it, and save it if asked."""
    flowchart = asyncio.run(analyze(snippet))
    print(flowchart)

    if output is not None:
        path = write_flowchart(flowchart, output)
        _status(f"Output written to: {path}")
    return flowchart


def main(argv: list[str] | None = None) -> int:
    """CLI entry point — accepts a file argument or reads the snippet from stdin."""
    args = list(sys.argv[1:] if argv is None else argv)
    setup_logging()

    if "-h" in args or "--help" in args:
        print(USAGE)
        return 0

    try:
        output = _pop_option(args, "--output")
    except ValueError as exc:
        _status(str(exc))
        return 2

    if "--preload" in args:
        _status("Preparing runtime...")
        asyncio.run(_preload())
        if not get_resource().is_ready:
            _status("Runtime could not be prepared.")
            return 1
        _status("Runtime ready.")
        return 0

    example = "--example" in args
    if example:
        args.remove("--example")

    if len(args) > (0 if example else 1):
        _status(f"Unexpected arguments: {' '.join(args if example else args[1:])}")
        print(USAGE, file=sys.stderr)
        return 2

    if example:
        snippet = EXAMPLE_SNIPPET
    elif args:
        try:
            snippet = Path(args[0]).read_text(encoding="utf-8")
        except OSError as exc:
            _status(f"Cannot read {args[0]}: {exc.strerror or exc}")
            return 2
    else:
        _status("Enter Python code (Ctrl+D / Ctrl+Z to submit):")
        snippet = sys.stdin.read()

    try:
        run(snippet, output=output)
    except ValueError as exc:
        _status(str(exc))
        return 2
    except FlowtextError as exc:
        _status(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
