"""Script runner executed inside the isolated interpreter.

Reads a Python script from stdin, executes it, and evaluates its final
statement when that statement is an expression. Exactly one JSON document is
written to stdout:

    {"ok": true,  "value": "<str of last expression or null>", "output": "..."}
    {"ok": false, "error": "ExcType: message", "traceback": "...", "output": "..."}

Anything the script prints is captured into "output" so it cannot corrupt the
JSON document. This file runs as a standalone program: it must only import
the standard library.
"""

import ast
import contextlib
import io
import json
import sys
import traceback


def run_script(source: str) -> dict:
    captured = io.StringIO()
    namespace = {"__name__": "__main__"}
    try:
        tree = ast.parse(source, filename="<analysis>", mode="exec")
        last_expr = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            last_expr = ast.Expression(tree.body.pop().value)

        with contextlib.redirect_stdout(captured):
            exec(compile(tree, "<analysis>", "exec"), namespace)
            value = None
            if last_expr is not None:
                value = eval(compile(last_expr, "<analysis>", "eval"), namespace)
    except Exception as exc:
        lines = traceback.format_exception_only(type(exc), exc)
        return {
            "ok": False,
            "error": lines[-1].strip(),
            "traceback": traceback.format_exc(),
            "output": captured.getvalue(),
        }

    return {
        "ok": True,
        "value": None if value is None else str(value),
        "output": captured.getvalue(),
    }


def main() -> int:
    result = run_script(sys.stdin.read())
    sys.stdout.write(json.dumps(result))
    sys.stdout.flush()
    return 0 if result["ok"] else 1


if __name__ == "__main__":
    sys.exit(main())
