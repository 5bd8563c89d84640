"""
Paper search: local notes plus debounced Semantic Scholar queries.

Local matches are computed on every keystroke. Remote queries go through
DebouncedSearch: each new query bumps a generation counter and schedules a
delayed dispatch; a dispatch whose generation is no longer current when it
fires, or when its results arrive, is dropped.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from scholar_notes.constants import (
    NOTICE_DOWNLOAD_FROM_S2,
    NOTICE_LOCAL_FILE_NOT_FOUND,
    NOTICE_S2_URL_NOT_FOUND,
)
from scholar_notes.exceptions import ScholarError
from scholar_notes.models import StructuredPaperData
from scholar_notes.notes.reader import LocalPaper

logger = logging.getLogger(__name__)

RESULT_LOCAL = "local"
RESULT_SEMANTIC_SCHOLAR = "semanticscholar"

SearchFunction = Callable[[str], List[StructuredPaperData]]
ResultsCallback = Callable[[str, List[StructuredPaperData]], None]


@dataclass
class SearchResult:
    """
    One suggestion shown to the user.

    Attributes:
        paper: The paper.
        result_type: 'local' or 'semanticscholar'.
        local_file_path: Note path for local results.
        s2_url: Semantic Scholar page for remote results.
        is_first_s2_result: Marks the first remote result (section heading).
    """

    paper: StructuredPaperData
    result_type: str
    local_file_path: Optional[str] = None
    s2_url: Optional[str] = None
    is_first_s2_result: bool = False


def search_local_papers(entries: List[LocalPaper], query: str) -> List[SearchResult]:
    """
    Match local papers whose title or any author contains the query.

    Matching is a case-insensitive substring test.
    """
    needle = query.lower()
    results = []
    for entry in entries:
        paper = entry.paper
        if needle in paper.title.lower() or any(needle in author.lower() for author in paper.authors):
            results.append(
                SearchResult(paper=paper, result_type=RESULT_LOCAL, local_file_path=entry.file_path)
            )
    return results


class DebouncedSearch:
    """
    Delay remote searches until the user stops typing.

    Only the most recent query whose delay elapsed without newer input
    reaches ``on_results``. Superseded dispatches are not cancelled; they
    notice their generation is stale and drop out.

    Attributes:
        delay: Seconds to wait before dispatching.
        min_query_length: Shorter queries are ignored.
        last_search: The last query whose results were delivered.
        last_results: Those results.
    """

    def __init__(
        self,
        search_fn: SearchFunction,
        on_results: ResultsCallback,
        delay: float = 0.25,
        min_query_length: int = 3,
        on_error: Optional[Callable[[ScholarError], None]] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.search_fn = search_fn
        self.on_results = on_results
        self.on_error = on_error
        self.delay = delay
        self.min_query_length = min_query_length
        self.last_search = ""
        self.last_results: List[StructuredPaperData] = []
        self._timer_factory = timer_factory
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def submit(self, query: str) -> Optional[int]:
        """
        Schedule a delayed search for a query.

        Returns:
            The generation assigned to the dispatch, or None if the query was
            ignored (too short, or identical to the last completed search).
        """
        if query == self.last_search or len(query) < self.min_query_length:
            return None

        with self._lock:
            self._generation += 1
            generation = self._generation

        timer = self._timer_factory(self.delay, self._dispatch, args=(query, generation))
        timer.daemon = True
        timer.start()
        logger.debug(f"Scheduled search '{query}' (generation {generation})")
        return generation

    def _dispatch(self, query: str, generation: int) -> None:
        if not self._is_current(generation):
            logger.debug(f"Search '{query}' superseded before dispatch")
            return

        try:
            results = self.search_fn(query)
        except ScholarError as e:
            logger.error(f"Search '{query}' failed: {e}")
            if self.on_error is not None:
                self.on_error(e)
            return

        if not self._is_current(generation):
            logger.debug(f"Discarding results for superseded search '{query}'")
            return

        self.last_search = query
        self.last_results = results
        self.on_results(query, results)


class PaperSearch:
    """
    Suggestion source for a paper search box.

    Combines local note matches with the results of the last completed
    Semantic Scholar search, and acts on the chosen suggestion.

    Typical usage:
        >>> search = PaperSearch(manager, on_update=refresh_list)
        >>> search.get_suggestions('attention')     # local matches now
        >>> search.request_remote('attention')      # remote after the delay
    """

    def __init__(
        self,
        manager,
        on_update: Optional[Callable[[], None]] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.manager = manager
        self.on_update = on_update
        self.local_papers: List[LocalPaper] = manager.load_local_papers()
        search_config = manager.config.search
        self.debouncer = DebouncedSearch(
            search_fn=manager.semantic_scholar.search,
            on_results=self._on_remote_results,
            delay=search_config.debounce_ms / 1000.0,
            min_query_length=search_config.min_query_length,
            on_error=lambda e: manager.notify(str(e)),
            timer_factory=timer_factory,
        )

    def _on_remote_results(self, query: str, results: List[StructuredPaperData]) -> None:
        if self.on_update is not None:
            self.on_update()

    def request_remote(self, query: str) -> Optional[int]:
        """Ask for a debounced Semantic Scholar search."""
        return self.debouncer.submit(query)

    def get_suggestions(self, query: str) -> List[SearchResult]:
        """Local matches, followed by remote results if they belong to this query."""
        results = search_local_papers(self.local_papers, query)
        if query == self.debouncer.last_search:
            results.extend(
                SearchResult(
                    paper=paper,
                    result_type=RESULT_SEMANTIC_SCHOLAR,
                    s2_url=paper.url,
                    is_first_s2_result=index == 0,
                )
                for index, paper in enumerate(self.debouncer.last_results)
            )
        return results

    def choose(self, result: SearchResult):
        """
        Act on a chosen suggestion.

        Local results open the note. Remote results run the download
        pipeline and return its report.
        """
        if result.result_type == RESULT_LOCAL:
            if result.local_file_path:
                self.manager.open_file(result.local_file_path)
            else:
                self.manager.notify(NOTICE_LOCAL_FILE_NOT_FOUND)
            return None

        if not result.s2_url:
            self.manager.notify(NOTICE_S2_URL_NOT_FOUND)
            return None
        self.manager.notify(NOTICE_DOWNLOAD_FROM_S2)
        return self.manager.save_paper(result.paper)
