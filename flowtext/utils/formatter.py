"""Output writer — saves generated flowchart text to disk."""

from pathlib import Path

from flowtext.config import PROJECT_ROOT, get_config


def _free_path(path: Path) -> Path:
    """Return ``path``, or ``name (2).ext``, ``name (3).ext``... if it is taken."""
    candidate = path
    counter = 1
    while candidate.exists():
        counter += 1
        candidate = path.with_name(f"{path.stem} ({counter}){path.suffix}")
    return candidate


def write_flowchart(text: str, output_path=None) -> Path:
    """Write flowchart text to ``output_path`` or the configured default.

    Relative default paths resolve against the project root. Never
    overwrites an existing file. Returns the Path actually written.
    """
    if output_path is None:
        output_path = PROJECT_ROOT / get_config().get("output_path", "./output/flowchart.txt")
    path = _free_path(Path(output_path))
    path.parent.mkdir(parents=True, exist_ok=True)

    if not text.endswith("\n"):
        text += "\n"
    path.write_text(text, encoding="utf-8")
    return path
