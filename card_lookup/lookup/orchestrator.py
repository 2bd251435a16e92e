"""Lookup orchestrator: drives one lookup from a trigger to a terminal overlay state.

States (OverlayState):
    region:  idle -> capturing -> validating -> recognizing_text -> resolving_card
             -> resolved | no_match | error_fallback
    name:    idle -> normalizing_input -> resolving_card -> resolved | no_match | error_fallback
    debug:   idle -> debug_capturing -> debug_resolving -> debug_resolved

Every trigger tears down the current presentation and starts a new run generation.
dismiss() returns to idle at once. In-flight requests are never cancelled; when a
superseded run's request completes its result is logged and dropped instead of rendered.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from card_lookup.cards.normalize import normalize_name
from card_lookup.core.errors import CaptureFailure, LookupFailure, ValidationFailure
from card_lookup.imaging.capture import RegionCapturer, Scene
from card_lookup.lookup.pipeline import INVALID_CAPTURE_REASON, LookupPipeline
from card_lookup.models.entities import (
    LOADING_STATES,
    TERMINAL_STATES,
    CapturedImage,
    Failed,
    Found,
    LookupResult,
    NotFound,
    OverlayState,
    Point,
)

_log = logging.getLogger(__name__)

LOOKING_UP_MESSAGE = "Looking up card..."
CALLING_BACKEND_MESSAGE = "Calling backend..."
NO_CARD_DETECTED_MESSAGE = "No card detected. Please enter card name manually."
CAPTURE_FAILED_REASON = "Failed to capture region"
NO_TEXT_DETECTED = "(no text detected)"


def searching_message(name: str) -> str:
    return f"Searching for: {name}"


def card_not_found_message(name: str) -> str:
    return f'Card not found: "{name}"'


@dataclass(frozen=True)
class StateChange:
    """Notification sent to the UI layer on every transition."""

    state: OverlayState
    message: str = ""
    result: LookupResult | None = None
    detected_name: str | None = None  # pre-fill for the manual-entry prompt
    capture: CapturedImage | None = None  # debug overlays only
    debug_text: str | None = None

    @property
    def loading(self) -> bool:
        return self.state in LOADING_STATES

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES


IDLE = StateChange(state=OverlayState.idle)

StateListener = Callable[[StateChange], None]


def format_debug_text(result: LookupResult) -> str:
    detected = result.detected_name if not isinstance(result, Failed) and result.detected_name else NO_TEXT_DETECTED
    card_info = f"Card found: {result.card.name}" if isinstance(result, Found) else "No card match found"
    return f'OCR Result: "{detected}"\n{card_info}'


class LookupOrchestrator:
    """Single live overlay; every transition is pushed to the listener."""

    def __init__(
        self,
        capturer: RegionCapturer,
        pipeline: LookupPipeline,
        scene_provider: Callable[[], Scene],
        listener: StateListener | None = None,
        *,
        capture_width: float = 125,
        capture_height: float = 60,
    ) -> None:
        self.capturer = capturer
        self.pipeline = pipeline
        self._scene_provider = scene_provider
        self._listener = listener
        self.capture_width = capture_width
        self.capture_height = capture_height
        self._current = IDLE
        self._generation = 0

    @property
    def state(self) -> OverlayState:
        return self._current.state

    @property
    def current(self) -> StateChange:
        return self._current

    # --- lifecycle ---

    def _set_state(self, change: StateChange) -> None:
        self._current = change
        if self._listener is not None:
            self._listener(change)

    def _begin_run(self) -> int:
        """Tear down whatever is showing and return the new run's generation."""
        if self._current.state != OverlayState.idle:
            self._set_state(IDLE)
        self._generation += 1
        return self._generation

    def _transition(self, run_id: int, change: StateChange) -> bool:
        if run_id != self._generation:
            _log.debug("Dropping %s from superseded run %d", change.state.value, run_id)
            return False
        self._set_state(change)
        return True

    def dismiss(self) -> None:
        """Close action: return to idle now; any in-flight result will be discarded on arrival."""
        if self._current.state == OverlayState.idle:
            return
        self._generation += 1
        self._set_state(IDLE)

    # --- terminal states ---

    def _present(
        self,
        run_id: int,
        result: LookupResult,
        *,
        prefill: str,
        no_match_message: str,
    ) -> LookupResult:
        if isinstance(result, Failed):
            change = StateChange(
                state=OverlayState.error_fallback,
                message=result.reason,
                result=result,
                detected_name=prefill,
            )
        elif isinstance(result, Found) and result.card.image_url:
            change = StateChange(
                state=OverlayState.resolved,
                result=result,
                detected_name=result.detected_name,
            )
        else:
            # NotFound, or a match with nothing to render: offer manual entry.
            change = StateChange(
                state=OverlayState.no_match,
                message=no_match_message,
                result=result,
                detected_name=result.detected_name or prefill,
            )
        if not self._transition(run_id, change):
            _log.info("Discarded stale lookup result for run %d", run_id)
        return result

    def _capture(self, point: Point) -> CapturedImage | None:
        try:
            scene = self._scene_provider()
        except (OSError, ValueError) as e:
            _log.warning("Scene unavailable for capture: %s", e)
            return None
        return self.capturer.capture(scene, point, self.capture_width, self.capture_height)

    # --- entry points ---

    async def identify_from_region(self, point: Point, debug: bool = False) -> LookupResult:
        if debug:
            return await self._identify_debug(point)

        run_id = self._begin_run()
        self._transition(run_id, StateChange(state=OverlayState.capturing, message=LOOKING_UP_MESSAGE))
        capture = self._capture(point)
        if capture is None:
            failed = CaptureFailure(CAPTURE_FAILED_REASON).to_result()
            return self._present(run_id, failed, prefill="", no_match_message=NO_CARD_DETECTED_MESSAGE)

        self._transition(run_id, StateChange(state=OverlayState.validating, message=LOOKING_UP_MESSAGE))
        payload = capture.to_base64()
        if not self.pipeline.validate(payload):
            _log.warning("Capture %sx%s failed validation", capture.width, capture.height)
            failed = ValidationFailure(INVALID_CAPTURE_REASON).to_result()
            return self._present(run_id, failed, prefill="", no_match_message=NO_CARD_DETECTED_MESSAGE)

        self._transition(run_id, StateChange(state=OverlayState.recognizing_text, message=LOOKING_UP_MESSAGE))
        try:
            text = await self.pipeline.recognize(payload)
        except LookupFailure as e:
            return self._present(run_id, e.to_result(), prefill="", no_match_message=NO_CARD_DETECTED_MESSAGE)
        name = normalize_name(text)
        if run_id != self._generation:
            # Superseded while OCR was in flight: no further paid calls for this run.
            _log.info("Run %d superseded after OCR; skipping card resolution", run_id)
            return NotFound(detected_name=name or None)
        if not name:
            return self._present(run_id, NotFound(), prefill="", no_match_message=NO_CARD_DETECTED_MESSAGE)

        self._transition(
            run_id, StateChange(state=OverlayState.resolving_card, message=searching_message(name))
        )
        try:
            result = await self.pipeline.resolve(name)
        except LookupFailure as e:
            return self._present(run_id, e.to_result(), prefill=name, no_match_message=NO_CARD_DETECTED_MESSAGE)
        if isinstance(result, Found):
            result = Found(card=result.card, detected_name=name)
        else:
            result = NotFound(detected_name=name)
        return self._present(run_id, result, prefill=name, no_match_message=NO_CARD_DETECTED_MESSAGE)

    async def identify_from_name(self, name: str) -> LookupResult:
        run_id = self._begin_run()
        self._transition(
            run_id, StateChange(state=OverlayState.normalizing_input, message=searching_message(name))
        )
        cleaned = normalize_name(name)
        if not cleaned:
            return self._present(run_id, NotFound(), prefill=name, no_match_message=card_not_found_message(name))

        self._transition(
            run_id, StateChange(state=OverlayState.resolving_card, message=searching_message(cleaned))
        )
        try:
            result = await self.pipeline.resolve(cleaned)
        except LookupFailure as e:
            result = e.to_result()
        return self._present(run_id, result, prefill=name, no_match_message=card_not_found_message(cleaned))

    async def _identify_debug(self, point: Point) -> LookupResult:
        run_id = self._begin_run()
        self._transition(run_id, StateChange(state=OverlayState.debug_capturing))
        capture = self._capture(point)
        if capture is None:
            failed = CaptureFailure(CAPTURE_FAILED_REASON).to_result()
            self._transition(
                run_id,
                StateChange(state=OverlayState.debug_resolved, message=CAPTURE_FAILED_REASON, result=failed),
            )
            return failed

        self._transition(
            run_id,
            StateChange(state=OverlayState.debug_resolving, message=CALLING_BACKEND_MESSAGE, capture=capture),
        )
        result = await self.pipeline.lookup_image(capture.to_base64())
        if isinstance(result, Failed):
            change = StateChange(
                state=OverlayState.debug_resolved,
                message=f"Backend error: {result.reason}",
                result=result,
                capture=capture,
            )
        else:
            change = StateChange(
                state=OverlayState.debug_resolved,
                result=result,
                detected_name=result.detected_name,
                capture=capture,
                debug_text=format_debug_text(result),
            )
        if not self._transition(run_id, change):
            _log.info("Discarded stale debug result for run %d", run_id)
        return result
