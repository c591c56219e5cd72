"""
Interaction signal mapping.

This module handles:
- Hand landmark predictions arriving from the gesture model (mailbox)
- Hand position smoothing, mirroring and fist detection
- Mouse fallback when no hand is tracked
- Mapping the pointer onto wind, vertical influence and contraction
- Drag rotation and wheel zoom of the world
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import structlog

from .behavior import clamp, lerp, remap

logger = structlog.get_logger()

# Landmark indices in a 21-point hand model
WRIST = 0
MIDDLE_KNUCKLE = 9
MIDDLE_TIP = 12

FIST_RATIO = 1.1
HAND_SMOOTHING = 0.4
WIND_SMOOTHING = 0.05
VERTICAL_SMOOTHING = 0.1
CONTRACTION_SMOOTHING = 0.1

ROTATE_Y_RATE = 0.008
ROTATE_X_RATE = 0.005
TILT_MIN = -1.2
TILT_MAX = 0.1
ZOOM_RATE = 0.001
ZOOM_MIN = 0.5
ZOOM_MAX = 2.2

DEFAULT_ROTATION = (-0.6, 0.0)

Landmark = Tuple[float, float, float]


@dataclass(frozen=True)
class HandPrediction:
    """One detected hand: landmarks in video pixel space."""

    landmarks: Sequence[Landmark]


@dataclass
class Rotation:
    """World Euler angles in radians."""

    x: float = DEFAULT_ROTATION[0]
    y: float = DEFAULT_ROTATION[1]

    def copy(self) -> "Rotation":
        return Rotation(self.x, self.y)


@dataclass
class InteractionState:
    """Pointer, camera and interaction scalars of one session."""

    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    is_dragging: bool = False
    drag_anchor: Tuple[float, float] = (0.0, 0.0)
    rotation: Rotation = field(default_factory=Rotation)
    rotation_anchor: Rotation = field(default_factory=Rotation)
    zoom: float = 1.0
    wind: float = 0.0
    wind_target: float = 0.0
    vertical_influence: float = 0.0
    contraction: float = 0.0
    is_fist_like: bool = False


def hand_metrics(wrist: Landmark, knuckle: Landmark, tip: Landmark) -> Tuple[float, float]:
    """``(hand_size, tip_distance)`` measured from the wrist in the image plane."""
    hand_size = math.hypot(knuckle[0] - wrist[0], knuckle[1] - wrist[1])
    tip_dist = math.hypot(tip[0] - wrist[0], tip[1] - wrist[1])
    return hand_size, tip_dist


def is_fist_like(wrist: Landmark, knuckle: Landmark, tip: Landmark) -> bool:
    """A hand is a fist when the middle fingertip curls back within 1.1 hand sizes."""
    hand_size, tip_dist = hand_metrics(wrist, knuckle, tip)
    return tip_dist < hand_size * FIST_RATIO


class HandMailbox:
    """
    Single-slot holder for the latest gesture model output.

    The model calls ``post`` whenever it finishes a prediction; the tick loop
    calls ``take`` to receive the newest one (or None if nothing new arrived).
    Older unread predictions are simply overwritten. Until the model reports
    ready, ``take`` delivers nothing.
    """

    def __init__(self):
        self._latest: Optional[List[HandPrediction]] = None
        self.model_ready = False

    def mark_ready(self) -> None:
        self.model_ready = True

    def post(self, predictions: Sequence[HandPrediction]) -> None:
        self._latest = list(predictions)

    def take(self) -> Optional[List[HandPrediction]]:
        if not self.model_ready:
            return None
        latest, self._latest = self._latest, None
        return latest

    def clear(self) -> None:
        self._latest = None


class HandTracker:
    """Smoothed, mirrored hand position in canvas space."""

    def __init__(
        self,
        canvas_width: float,
        canvas_height: float,
        video_width: float = 320,
        video_height: float = 240,
    ):
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.video_width = video_width
        self.video_height = video_height
        self.position: Optional[Tuple[float, float]] = None
        self.ready = False
        self.is_fist = False
        self.last_seen_tick: Optional[int] = None

    def to_canvas(self, x: float, y: float) -> Tuple[float, float]:
        """Map video pixels to canvas space, mirroring the horizontal axis."""
        half_w = self.canvas_width / 2
        half_h = self.canvas_height / 2
        return (
            remap(x, 0, self.video_width, half_w, -half_w),
            remap(y, 0, self.video_height, -half_h, half_h),
        )

    def observe(self, predictions: Sequence[HandPrediction], tick: int) -> None:
        """Fold one batch of predictions into the tracked hand."""
        if not predictions:
            self.lose()
            return

        landmarks = predictions[0].landmarks
        mapped_x, mapped_y = self.to_canvas(*landmarks[MIDDLE_KNUCKLE][:2])

        if self.position is None:
            self.position = (mapped_x, mapped_y)
        else:
            self.position = (
                lerp(self.position[0], mapped_x, HAND_SMOOTHING),
                lerp(self.position[1], mapped_y, HAND_SMOOTHING),
            )

        self.is_fist = is_fist_like(
            landmarks[WRIST], landmarks[MIDDLE_KNUCKLE], landmarks[MIDDLE_TIP]
        )
        self.ready = True
        self.last_seen_tick = tick

    def lose(self) -> None:
        """Hand left the frame; keep the last position for re-seeding smoothing."""
        self.ready = False
        self.is_fist = False

    def expire(self, tick: int, stale_ticks: int) -> None:
        """Drop a hand that has not been refreshed for ``stale_ticks`` ticks."""
        if self.ready and self.last_seen_tick is not None:
            if tick - self.last_seen_tick > stale_ticks:
                logger.warning("Hand observation went stale", last_seen=self.last_seen_tick)
                self.lose()

    def reset(self) -> None:
        self.position = None
        self.lose()
        self.last_seen_tick = None


class InteractionMapper:
    """Turns raw pointer and hand input into interaction scalars each tick."""

    def __init__(
        self,
        canvas_width: float,
        canvas_height: float,
        video_width: float = 320,
        video_height: float = 240,
        stale_ticks: int = 30,
    ):
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.stale_ticks = stale_ticks
        self.state = InteractionState()
        self.mailbox = HandMailbox()
        self.hand = HandTracker(canvas_width, canvas_height, video_width, video_height)

    def update_pointer(self, tick: int, mouse: Tuple[float, float]) -> Tuple[float, float, float]:
        """
        Refresh the pointer position for this tick.

        Reads the newest hand prediction if one arrived and falls back to the
        mouse (recentred on the canvas) whenever no hand is tracked.
        """
        predictions = self.mailbox.take()
        if predictions is not None:
            self.hand.observe(predictions, tick)
        self.hand.expire(tick, self.stale_ticks)

        if self.hand.ready and self.hand.position is not None:
            x, y = self.hand.position
        else:
            x = mouse[0] - self.canvas_width / 2
            y = mouse[1] - self.canvas_height / 2

        self.state.position = (x, y, 0.0)
        self.state.is_fist_like = self.hand.ready and self.hand.is_fist
        return self.state.position

    def map_signals(self, mouse: Tuple[float, float]) -> InteractionState:
        """Smooth the interaction scalars toward the current pointer."""
        state = self.state
        x, y, _ = state.position
        half_w = self.canvas_width / 2
        half_h = self.canvas_height / 2

        state.wind_target = remap(x, -half_w, half_w, -1, 1)
        state.wind = lerp(state.wind, state.wind_target, WIND_SMOOTHING)

        # Top of the screen counts as active/tall
        vertical_target = clamp(remap(y, -half_h, half_h, 1, 0), 0, 1)
        state.vertical_influence = lerp(state.vertical_influence, vertical_target, VERTICAL_SMOOTHING)

        contraction_target = 1.0 if state.is_fist_like else 0.0
        state.contraction = lerp(state.contraction, contraction_target, CONTRACTION_SMOOTHING)

        if state.is_dragging:
            self.drag_to(*mouse)
        return state

    def start_drag(self, mouse_x: float, mouse_y: float) -> None:
        self.state.is_dragging = True
        self.state.drag_anchor = (mouse_x, mouse_y)
        self.state.rotation_anchor = self.state.rotation.copy()

    def drag_to(self, mouse_x: float, mouse_y: float) -> None:
        """Rotate the world relative to where the drag started."""
        state = self.state
        dx = mouse_x - state.drag_anchor[0]
        dy = mouse_y - state.drag_anchor[1]
        state.rotation.y = state.rotation_anchor.y + dx * ROTATE_Y_RATE
        state.rotation.x = clamp(state.rotation_anchor.x + dy * ROTATE_X_RATE, TILT_MIN, TILT_MAX)

    def end_drag(self) -> None:
        self.state.is_dragging = False

    def wheel(self, delta: float) -> float:
        """Zoom by a wheel delta; positive deltas zoom out."""
        self.state.zoom = clamp(self.state.zoom - delta * ZOOM_RATE, ZOOM_MIN, ZOOM_MAX)
        return self.state.zoom

    def reset(self) -> None:
        """Back to the default camera and resting scalars."""
        self.state = InteractionState()
        self.hand.reset()
        self.mailbox.clear()
