"""
Pull the answer text out of a knowledge-base (Langflow) run response.

The upstream JSON shape depends on how the flow is configured, so the answer is
located by trying an ordered list of shape probes. Each probe is a small path
expression such as ``outputs[0].outputs[0].artifacts.message`` plus the type the
terminal value must have. The first probe that resolves to a non-empty string
wins; later probes are not evaluated.

Missing keys, wrong container types and empty lists are ordinary non-matches.
Nothing here raises on malformed input and nothing here has side effects.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

Segment = Union[str, int]

_SEGMENT_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_\-]*)|\[(\d+)\]")


def parse_path(expr: str) -> tuple[Segment, ...]:
    """
    Parse ``a.b[0].c`` into ``("a", "b", 0, "c")``.
    Raises ValueError for malformed expressions (probe definitions are static, so this is a programming error).
    """
    segments: list[Segment] = []
    pos = 0
    expr = expr.strip()
    while pos < len(expr):
        if expr[pos] == "." and segments:
            pos += 1
            if pos == len(expr):
                raise ValueError(f"Invalid probe path {expr!r}: trailing '.'")
        m = _SEGMENT_RE.match(expr, pos)
        if not m:
            raise ValueError(f"Invalid probe path {expr!r} at offset {pos}")
        key, index = m.groups()
        segments.append(key if key is not None else int(index))
        pos = m.end()
    if not segments:
        raise ValueError("Empty probe path")
    return tuple(segments)


@dataclass(frozen=True)
class ShapeProbe:
    """One path into the response plus the type its terminal value must have."""

    name: str
    path: str
    expected_type: type = str
    segments: tuple[Segment, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", parse_path(self.path))

    def resolve(self, payload: Any) -> Optional[Any]:
        """Walk the path; return the terminal value on a full match, else None."""
        node = payload
        for seg in self.segments:
            if isinstance(seg, int):
                if not isinstance(node, list) or not node or seg >= len(node):
                    return None
                node = node[seg]
            else:
                if not isinstance(node, dict) or seg not in node:
                    return None
                node = node[seg]
        if not isinstance(node, self.expected_type):
            return None
        if isinstance(node, str) and not node:
            return None
        return node


# Priority order: the nested run-output shapes first, then the older flat shapes.
LANGFLOW_PROBES: tuple[ShapeProbe, ...] = (
    ShapeProbe("artifacts_message", "outputs[0].outputs[0].artifacts.message"),
    ShapeProbe("results_message_text", "outputs[0].outputs[0].results.message.text"),
    ShapeProbe("outputs_message_message", "outputs[0].outputs[0].outputs.message.message"),
    ShapeProbe("text", "text"),
    ShapeProbe("result_message_text", "result.message.text"),
    ShapeProbe("result_text", "result.text"),
)


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of normalization. ``text`` is None when no probe matched; ``payload`` is kept for logging."""

    text: Optional[str]
    probe: Optional[str]
    payload: Any

    @property
    def found(self) -> bool:
        return self.text is not None


def extract_answer(payload: Any, probes: tuple[ShapeProbe, ...] = LANGFLOW_PROBES) -> ExtractionResult:
    """Return the first probe match, or a not-found result carrying the original payload."""
    for probe in probes:
        value = probe.resolve(payload)
        if value is not None:
            return ExtractionResult(text=value, probe=probe.name, payload=payload)
    return ExtractionResult(text=None, probe=None, payload=payload)
