"""Flowchart generation for Python snippets.

``analyze`` hands a snippet to pyflowchart inside the shared isolated
runtime and returns the flowchart.js text it produces. The snippet is
embedded in a generated script that the runtime executes; that script runs
with the caller's privileges.
"""

import asyncio
import logging

from flowtext.errors import AnalysisError, ExecutionError, InvalidStateTransition
from flowtext.runtime.loader import SingletonAsyncResource, get_resource
from flowtext.utils.validator import validate_snippet

logger = logging.getLogger(__name__)

DELIMITER = '"""'
ESCAPED_DELIMITER = '\\"\\"\\"'

_SCRIPT_HEAD = '''\
from pyflowchart import Flowchart

code_for_flowchart = """
'''

_SCRIPT_TAIL = '''
"""

fc = Flowchart.from_code(code_for_flowchart)
fc.flowchart()
'''


def escape_delimiter(snippet: str) -> str:
    """Escape every triple-quote in ``snippet`` once, so it fits in a triple-quoted literal."""
    return snippet.replace(DELIMITER, ESCAPED_DELIMITER)


def build_script(snippet: str) -> str:
    """Return the analysis script for ``snippet``.

    The script's final expression is the flowchart text, which is what the
    runtime hands back.
    """
    return _SCRIPT_HEAD + escape_delimiter(snippet) + _SCRIPT_TAIL


async def analyze(snippet: str, resource: SingletonAsyncResource | None = None) -> str:
    """Generate a text flowchart for a Python ``snippet``.

    Loads the runtime on first use. Raises ValueError for an empty snippet and
    AnalysisError if the runtime cannot be prepared or the analysis fails.
    """
    validate_snippet(snippet)
    resource = resource or get_resource()
    logger.info("Request received to generate flowchart.")

    try:
        handle = await resource.acquire()
        logger.debug("Runtime ready. Executing analysis script...")
        result = await asyncio.to_thread(handle.run, build_script(snippet))
        if result is None:
            raise ExecutionError("Analysis script produced no value")
    except InvalidStateTransition:
        raise
    except Exception as exc:
        logger.error("Error during flowchart generation: %s", exc)
        raise AnalysisError(exc) from exc

    logger.info("Flowchart text received (%d chars).", len(result))
    return result


def analyze_sync(snippet: str, resource: SingletonAsyncResource | None = None) -> str:
    """Blocking wrapper around ``analyze`` for callers without an event loop.

    Safe to call from several threads at once; they share one runtime load.
    """
    return asyncio.run(analyze(snippet, resource))
