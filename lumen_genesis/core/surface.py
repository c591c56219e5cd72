"""
Drawing surface contract used by creature display.

The renderer is an external collaborator; creatures only need a retained 3D
immediate-mode surface (Y down, right-handed) that accepts the calls in
``DrawingSurface``. Colors are HSB with alpha in [0, 1].
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence, Tuple


class ShapeKind(str, Enum):
    """Vertex grouping for ``begin_shape``."""

    POLYGON = "polygon"
    TRIANGLES = "triangles"
    TRIANGLE_STRIP = "triangle_strip"


class DrawingSurface(Protocol):
    """Primitive draw calls a renderer must accept."""

    def push(self) -> None: ...
    def pop(self) -> None: ...
    def translate(self, x: float, y: float, z: float = 0.0) -> None: ...
    def rotate_x(self, angle: float) -> None: ...
    def rotate_y(self, angle: float) -> None: ...
    def rotate(self, angle: float, axis: Sequence[float]) -> None: ...
    def scale(self, factor: float) -> None: ...
    def stroke(self, hue: float, sat: float, bri: float, alpha: float = 1.0) -> None: ...
    def fill(self, hue: float, sat: float, bri: float, alpha: float = 1.0) -> None: ...
    def no_stroke(self) -> None: ...
    def no_fill(self) -> None: ...
    def stroke_weight(self, weight: float) -> None: ...
    def ellipse(self, x: float, y: float, w: float, h: float) -> None: ...
    def rect(self, x: float, y: float, w: float, h: float) -> None: ...
    def box(self, w: float, h: float, d: float) -> None: ...
    def sphere(self, radius: float) -> None: ...
    def line(self, x1: float, y1: float, z1: float, x2: float, y2: float, z2: float) -> None: ...
    def point(self, x: float, y: float, z: float) -> None: ...
    def begin_shape(self, kind: ShapeKind = ShapeKind.POLYGON) -> None: ...
    def vertex(self, x: float, y: float, z: float) -> None: ...
    def end_shape(self, close: bool = False) -> None: ...


@dataclass
class RecordingSurface:
    """Surface that records every call as ``(name, args)``.

    Used for headless runs and for checking that display output depends only
    on creature state.
    """

    calls: List[Tuple[str, Tuple[Any, ...]]] = field(default_factory=list)
    depth: int = 0
    max_depth: int = 0

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def count(self, name: str) -> int:
        """Number of recorded calls to ``name``."""
        return sum(1 for call, _ in self.calls if call == name)

    def last(self, name: str) -> Optional[Tuple[Any, ...]]:
        """Arguments of the most recent call to ``name``."""
        for call, args in reversed(self.calls):
            if call == name:
                return args
        return None

    def clear(self) -> None:
        self.calls.clear()
        self.depth = 0
        self.max_depth = 0

    def push(self):
        self.depth += 1
        self.max_depth = max(self.max_depth, self.depth)
        self._record("push")

    def pop(self):
        self.depth -= 1
        self._record("pop")

    def translate(self, x, y, z=0.0):
        self._record("translate", x, y, z)

    def rotate_x(self, angle):
        self._record("rotate_x", angle)

    def rotate_y(self, angle):
        self._record("rotate_y", angle)

    def rotate(self, angle, axis):
        self._record("rotate", angle, tuple(axis))

    def scale(self, factor):
        self._record("scale", factor)

    def stroke(self, hue, sat, bri, alpha=1.0):
        self._record("stroke", hue, sat, bri, alpha)

    def fill(self, hue, sat, bri, alpha=1.0):
        self._record("fill", hue, sat, bri, alpha)

    def no_stroke(self):
        self._record("no_stroke")

    def no_fill(self):
        self._record("no_fill")

    def stroke_weight(self, weight):
        self._record("stroke_weight", weight)

    def ellipse(self, x, y, w, h):
        self._record("ellipse", x, y, w, h)

    def rect(self, x, y, w, h):
        self._record("rect", x, y, w, h)

    def box(self, w, h, d):
        self._record("box", w, h, d)

    def sphere(self, radius):
        self._record("sphere", radius)

    def line(self, x1, y1, z1, x2, y2, z2):
        self._record("line", x1, y1, z1, x2, y2, z2)

    def point(self, x, y, z):
        self._record("point", x, y, z)

    def begin_shape(self, kind=ShapeKind.POLYGON):
        self._record("begin_shape", kind)

    def vertex(self, x, y, z):
        self._record("vertex", x, y, z)

    def end_shape(self, close=False):
        self._record("end_shape", close)
