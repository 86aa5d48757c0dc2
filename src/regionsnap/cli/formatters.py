"""Result formatters for CLI output.

Provides formatting of detections in two formats:
- JSON: Machine-readable format
- text: One aligned line per detection
"""

import json
from typing import Any

from ..model import DetectedObject


def format_detections(
    objects: list[DetectedObject],
    format_type: str,
    best: DetectedObject | None = None,
    stats: dict[str, Any] | None = None,
) -> str:
    """Format detections in the specified format.

    Args:
        objects: Ranked detections
        format_type: Output format ("json" or "text")
        best: Optional best pick to highlight
        stats: Optional cache statistics

    Returns:
        Formatted string output

    Raises:
        ValueError: If format_type is not recognized
    """
    if format_type == "json":
        return _format_json(objects, best, stats)
    elif format_type == "text":
        return _format_text(objects, best)
    else:
        raise ValueError(f"Unknown format type: {format_type}")


def _format_json(
    objects: list[DetectedObject],
    best: DetectedObject | None,
    stats: dict[str, Any] | None,
) -> str:
    output: dict[str, Any] = {
        "count": len(objects),
        "objects": [obj.to_dict() for obj in objects],
    }
    if best is not None:
        output["best"] = best.to_dict()
    if stats is not None:
        output["cache"] = stats
    return json.dumps(output, indent=2)


def _format_text(objects: list[DetectedObject], best: DetectedObject | None) -> str:
    if not objects:
        return "No objects found"

    lines = []
    for rank, obj in enumerate(objects, start=1):
        b = obj.bounds
        marker = "*" if best is not None and obj == best else " "
        lines.append(
            f"{marker}{rank:>3}  {obj.object_type.value:<8} {obj.confidence:5.2f}  "
            f"x={b.x:.0f} y={b.y:.0f} w={b.width:.0f} h={b.height:.0f}  "
            f"{obj.label or ''} [{obj.source or '-'}]"
        )
    return "\n".join(lines)
