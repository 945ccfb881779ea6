"""Input validation — checks that a snippet is worth sending to the runtime."""


def validate_snippet(snippet: str) -> str:
    """Validate that the snippet is a string with some code in it.

    Returns the snippet unchanged; the analysis embeds it verbatim.
    Raises ValueError if input is not a string or is whitespace-only.
    """
    if not isinstance(snippet, str) or not snippet.strip():
        raise ValueError("Code snippet must be a non-empty string.")
    return snippet
