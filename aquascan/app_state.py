"""
Application state and view routing.

AppState is an immutable snapshot. transition() is a pure function from
(state, event) to the next state; AppShell is the only place that runs side
effects (geolocation, the model call, persistence) and feeds their outcomes
back in as events.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from geolocation import GeolocationAdapter
from models import DEFAULT_HOTSPOTS, AnalysisResult, DroneData, Hotspot
from result_store import ResultStore
from translations import DEFAULT_LANGUAGE, is_supported, labels_for
from water_analyzer import WaterAnalyzer

logger = logging.getLogger(__name__)


class View(str, Enum):
    SCAN = "scan"
    DASHBOARD = "dashboard"
    HISTORY = "history"
    MAP = "map"


class ViewUnavailableError(Exception):
    """Navigation target has nothing to show yet."""


class AnalysisInProgressError(Exception):
    """A submission arrived while another analysis is outstanding."""


@dataclass(frozen=True)
class AppState:
    view: View = View.SCAN
    current_result: Optional[AnalysisResult] = None
    history: Tuple[AnalysisResult, ...] = ()
    language: str = DEFAULT_LANGUAGE
    is_analyzing: bool = False

    @property
    def dashboard_available(self) -> bool:
        return self.current_result is not None


# Events

@dataclass(frozen=True)
class HistoryLoaded:
    history: Tuple[AnalysisResult, ...]


@dataclass(frozen=True)
class Navigate:
    view: View


@dataclass(frozen=True)
class SubmitStarted:
    pass


@dataclass(frozen=True)
class AnalysisSucceeded:
    result: AnalysisResult
    history: Tuple[AnalysisResult, ...]


@dataclass(frozen=True)
class AnalysisFailed:
    pass


@dataclass(frozen=True)
class HistorySelected:
    index: int


@dataclass(frozen=True)
class LanguageChanged:
    language: str


Event = Union[
    HistoryLoaded, Navigate, SubmitStarted, AnalysisSucceeded,
    AnalysisFailed, HistorySelected, LanguageChanged,
]


def transition(state: AppState, event: Event) -> AppState:
    """
    Compute the next state.

    Raises:
        ViewUnavailableError: Dashboard requested with no current result
        AnalysisInProgressError: Submission while analyzing
        IndexError: History selection out of range
        ValueError: Unsupported language
    """
    if isinstance(event, HistoryLoaded):
        return replace(state, history=tuple(event.history))

    if isinstance(event, Navigate):
        if event.view == View.DASHBOARD and not state.dashboard_available:
            raise ViewUnavailableError("No analysis result to show yet")
        return replace(state, view=event.view)

    if isinstance(event, SubmitStarted):
        if state.is_analyzing:
            raise AnalysisInProgressError("An analysis is already in progress")
        return replace(state, view=View.SCAN, is_analyzing=True)

    if isinstance(event, AnalysisSucceeded):
        return replace(
            state,
            view=View.DASHBOARD,
            current_result=event.result,
            history=tuple(event.history),
            is_analyzing=False,
        )

    if isinstance(event, AnalysisFailed):
        return replace(state, view=View.SCAN, is_analyzing=False)

    if isinstance(event, HistorySelected):
        if not 0 <= event.index < len(state.history):
            raise IndexError(f"No history entry at index {event.index}")
        return replace(state, view=View.DASHBOARD, current_result=state.history[event.index])

    if isinstance(event, LanguageChanged):
        if not is_supported(event.language):
            raise ValueError(f"Unsupported language: {event.language}")
        return replace(state, language=event.language)

    raise TypeError(f"Unknown event: {event!r}")


class AppShell:
    """Holds the single AppState and orchestrates analysis, storage and views."""

    def __init__(
        self,
        analyzer: Optional[WaterAnalyzer],
        store: ResultStore,
        geolocation: GeolocationAdapter,
        hotspots: Tuple[Hotspot, ...] = DEFAULT_HOTSPOTS,
        language: str = DEFAULT_LANGUAGE,
    ):
        self.analyzer = analyzer
        self.store = store
        self.geolocation = geolocation
        self.hotspots = tuple(hotspots)
        self.state = AppState(language=language)

    def start(self) -> AppState:
        """Restore persisted history."""
        return self.dispatch(HistoryLoaded(self.store.load_all()))

    def dispatch(self, event: Event) -> AppState:
        previous = self.state
        self.state = transition(previous, event)
        if self.state.view != previous.view:
            logger.info(f"View changed: {previous.view.value} -> {self.state.view.value}")
        return self.state

    async def submit(
        self,
        image: Optional[Union[bytes, str]] = None,
        drone_data: Optional[DroneData] = None,
        language: Optional[str] = None,
    ) -> AnalysisResult:
        """
        Analyze a sample, tag it with location and time, and store it.

        On success the new result becomes current and the view moves to Dashboard.
        On failure the view stays on Scan and the error propagates to the caller.
        A language given with the submission is applied only once the sample is accepted.

        Raises:
            AnalysisInProgressError: If another submission is outstanding
            InvalidSampleError: If the sample is malformed
            ValueError: If the language is unsupported
            AnalysisError: If the model call fails
            RuntimeError: If no analyzer is configured
        """
        if self.analyzer is None:
            raise RuntimeError("GEMINI_API_KEY environment variable not set")
        if self.state.is_analyzing:
            raise AnalysisInProgressError("An analysis is already in progress")

        language = language or self.state.language
        if not is_supported(language):
            raise ValueError(f"Unsupported language: {language}")
        request = self.analyzer.build_request(image, drone_data, language)

        self.dispatch(LanguageChanged(language))
        self.dispatch(SubmitStarted())
        try:
            location = await self.geolocation.get_current_location()
            result = (await self.analyzer.send(request)).tagged(location)
            history = self.store.append(result)
        except Exception:
            self.dispatch(AnalysisFailed())
            raise

        self.dispatch(AnalysisSucceeded(result=result, history=history))
        logger.info(
            f"Analysis stored: {result.risk_level.value} ({result.score}), "
            f"location {'attached' if result.location else 'unavailable'}"
        )
        return result

    def select_history(self, index: int) -> AnalysisResult:
        """View a past result. History is not modified."""
        self.dispatch(HistorySelected(index))
        return self.state.current_result

    def navigate(self, view: View) -> AppState:
        return self.dispatch(Navigate(view))

    def set_language(self, language: str) -> AppState:
        return self.dispatch(LanguageChanged(language))

    def navigation(self) -> List[Dict[str, Any]]:
        """Navigation items with their labels and enabled state."""
        labels = labels_for(self.state.language)
        items = [
            (View.SCAN, labels["newScan"], False),
            (View.DASHBOARD, labels["dashboard"], not self.state.dashboard_available),
            (View.HISTORY, labels["history"], False),
            (View.MAP, labels["map"], False),
        ]
        return [
            {"id": view.value, "label": label, "disabled": disabled, "active": view == self.state.view}
            for view, label, disabled in items
        ]
