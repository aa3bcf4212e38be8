"""Fragment orchestrator: discover, resolve, join, then convert in order."""

from __future__ import annotations

import logging

from concurrent.futures import FIRST_EXCEPTION, Future, wait
from typing import Iterable, List, Optional, Tuple

from nicehtml.constants import (
    STATE_DONE,
    STATE_FAILED,
    STATE_IDLE,
    STATE_INVOKING,
    STATE_JOINED,
    STATE_LOADING,
)
from nicehtml.discovery import discover_fragments
from nicehtml.exceptions import EngineLoadError
from nicehtml.output import OutputSink
from nicehtml.session import PageSession
from nicehtml.types import (
    EngineHandle,
    Fragment,
    Page,
    ResolutionResult,
    RunReport,
)

LOGGER = logging.getLogger(__name__)

_TRANSITIONS = {
    STATE_IDLE: {STATE_LOADING},
    STATE_LOADING: {STATE_JOINED, STATE_FAILED},
    STATE_JOINED: {STATE_INVOKING},
    STATE_INVOKING: {STATE_DONE},
}


class FragmentOrchestrator:
    """Runs the discovery, resolution and conversion phases for a session.

    Engine loading and every fragment resolution are submitted together. The
    join waits for all of them, except that an engine-load failure ends the
    wait early: the engine is a prerequisite, fragments are peers. Conversion
    then happens on the calling thread in discovery order.
    """

    def __init__(self, session: PageSession) -> None:
        self.session = session
        self.state = STATE_IDLE

    def discover(self, page: Page) -> List[Fragment]:
        return discover_fragments(
            page, script_type=self.session.settings.discovery.script_type
        )

    def run_all(
        self,
        page: Optional[Page] = None,
        *,
        fragments: Optional[Iterable[Fragment]] = None,
    ) -> RunReport:
        """Convert every resolvable fragment of ``page`` (or ``fragments``).

        Raises:
            EngineLoadError: the engine could not be initialized; nothing was
                converted.
        """

        if fragments is None:
            if page is None:
                raise ValueError("run_all requires a page or fragments")
            fragments = self.discover(page)
        ordered = sorted(fragments, key=lambda item: item.discovery_index)
        self.state = STATE_IDLE
        report = RunReport(discovered=len(ordered))

        self._transition(STATE_LOADING, report)
        engine_future = self.session.engine_loader.load_engine()
        resolutions = self._start_resolutions(ordered)
        handle = self._join(engine_future, resolutions, report)

        self._transition(STATE_JOINED, report)
        settled = [
            self._settled(fragment, future)
            for fragment, future in zip(ordered, resolutions)
        ]

        self._transition(STATE_INVOKING, report)
        for result in settled:
            index = result.fragment.discovery_index
            if not result.ok:
                report.skipped.append(index)
                report.errors[index] = result.error or "unknown error"
                self.session.events.record(
                    "fragment_skipped", index=index, error=result.error
                )
                continue
            handle.convert(result.content or "")
            report.converted.append(index)
            self.session.events.record("fragment_converted", index=index)

        self._transition(STATE_DONE, report)
        LOGGER.info(
            "Converted %d of %d fragment(s) with engine '%s'",
            len(report.converted),
            report.discovered,
            handle.name,
        )
        return report

    def _start_resolutions(
        self, ordered: List[Fragment]
    ) -> List[Future[ResolutionResult]]:
        """Start one fetch thread per remote fragment; inline ones settle now."""

        remote = [fragment for fragment in ordered if fragment.is_remote]
        pool = self.session.fetch_pool(len(remote)) if remote else None
        futures: List[Future[ResolutionResult]] = []
        for fragment in ordered:
            if pool is not None and fragment.is_remote:
                futures.append(
                    pool.submit(self.session.resolver.resolve, fragment)
                )
                continue
            settled: Future[ResolutionResult] = Future()
            settled.set_result(self.session.resolver.resolve(fragment))
            futures.append(settled)
        if pool is not None:
            pool.shutdown(wait=False)
        return futures

    def _join(
        self,
        engine_future: Future[EngineHandle],
        resolutions: List[Future[ResolutionResult]],
        report: RunReport,
    ) -> EngineHandle:
        wait([engine_future, *resolutions], return_when=FIRST_EXCEPTION)
        if not (engine_future.done() and engine_future.exception()):
            wait([engine_future, *resolutions])
        try:
            handle = engine_future.result()
        except Exception as exc:
            self._transition(STATE_FAILED, report)
            self.session.events.record("engine_failed", error=str(exc))
            if isinstance(exc, EngineLoadError):
                raise
            raise EngineLoadError(str(exc)) from exc
        self.session.events.record("engine_ready", engine=handle.name)
        return handle

    def _settled(
        self, fragment: Fragment, future: Future[ResolutionResult]
    ) -> ResolutionResult:
        try:
            result = future.result()
        except Exception as exc:
            LOGGER.error(
                "Error loading fragment %s: %s", fragment.label, exc
            )
            result = ResolutionResult.failure(fragment, str(exc))
        self.session.events.record(
            "fragment_resolved",
            index=fragment.discovery_index,
            origin=fragment.origin,
            ok=result.ok,
        )
        return result

    def _transition(self, state: str, report: RunReport) -> None:
        allowed = _TRANSITIONS.get(self.state, set())
        if state not in allowed:
            raise RuntimeError(
                f"Invalid orchestrator transition {self.state} -> {state}"
            )
        LOGGER.debug("Run %s: %s -> %s", self.session.run_id, self.state, state)
        self.state = state
        report.state = state
        self.session.events.record("state", state=state)


def render_page(
    page: Page, session: Optional[PageSession] = None
) -> Tuple[RunReport, OutputSink]:
    """Run one page through a (new, unless given) session."""

    if session is not None:
        report = FragmentOrchestrator(session).run_all(page)
        return report, session.sink
    with PageSession() as owned:
        report = FragmentOrchestrator(owned).run_all(page)
        return report, owned.sink


__all__ = ["FragmentOrchestrator", "render_page"]
