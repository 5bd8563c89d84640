"""
Unit tests for local search and debounced remote search.

Timers are replaced by FakeTimer so dispatches fire only when a test says so.
"""

from unittest.mock import Mock

import pytest

from scholar_notes.config import Config
from scholar_notes.constants import (
    NOTICE_DOWNLOAD_FROM_S2,
    NOTICE_LOCAL_FILE_NOT_FOUND,
    NOTICE_S2_URL_NOT_FOUND,
)
from scholar_notes.exceptions import FetchError
from scholar_notes.models import StructuredPaperData
from scholar_notes.notes.reader import LocalPaper
from scholar_notes.search import (
    RESULT_LOCAL,
    RESULT_SEMANTIC_SCHOLAR,
    DebouncedSearch,
    PaperSearch,
    SearchResult,
    search_local_papers,
)


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the callback."""

    def __init__(self, interval, function, args=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.daemon = False
        self.started = False

    def start(self):
        self.started = True

    def fire(self):
        self.function(*self.args)


class FakeTimerFactory:
    """Records every timer created."""

    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=None):
        timer = FakeTimer(interval, function, args)
        self.timers.append(timer)
        return timer


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def local_entries():
    return [
        LocalPaper(
            paper=StructuredPaperData(title="Attention Is All You Need", authors=["Ashish Vaswani"]),
            file_path="Papers/Attention Is All You Need.md",
        ),
        LocalPaper(
            paper=StructuredPaperData(title="Deep Residual Learning", authors=["Kaiming He"]),
            file_path="Papers/Deep Residual Learning.md",
        ),
    ]


class TestSearchLocalPapers:
    """Tests for search_local_papers()."""

    def test_title_match(self, local_entries):
        results = search_local_papers(local_entries, "attention")

        assert len(results) == 1
        assert results[0].result_type == RESULT_LOCAL
        assert results[0].local_file_path == "Papers/Attention Is All You Need.md"

    def test_author_match(self, local_entries):
        results = search_local_papers(local_entries, "kaiming")
        assert [r.paper.title for r in results] == ["Deep Residual Learning"]

    def test_no_match(self, local_entries):
        assert search_local_papers(local_entries, "diffusion") == []


class TestDebouncedSearch:
    """Tests for DebouncedSearch."""

    def _debouncer(self, timers, search_fn=None, on_error=None):
        delivered = []
        debouncer = DebouncedSearch(
            search_fn=search_fn or (lambda q: [StructuredPaperData(title=f"Result for {q}")]),
            on_results=lambda q, results: delivered.append((q, results)),
            delay=0.25,
            min_query_length=3,
            on_error=on_error,
            timer_factory=timers,
        )
        return debouncer, delivered

    def test_dispatch_after_delay(self, timers):
        debouncer, delivered = self._debouncer(timers)

        generation = debouncer.submit("attention")

        assert generation == 1
        assert delivered == []
        timer = timers.timers[0]
        assert timer.interval == 0.25
        assert timer.daemon is True
        assert timer.started is True

        timer.fire()
        assert delivered[0][0] == "attention"
        assert debouncer.last_search == "attention"
        assert debouncer.last_results[0].title == "Result for attention"

    def test_short_query_ignored(self, timers):
        debouncer, _ = self._debouncer(timers)

        assert debouncer.submit("ab") is None
        assert timers.timers == []

    def test_same_query_as_last_search_ignored(self, timers):
        debouncer, _ = self._debouncer(timers)
        debouncer.submit("attention")
        timers.timers[0].fire()

        assert debouncer.submit("attention") is None
        assert len(timers.timers) == 1

    def test_only_latest_query_dispatched(self, timers):
        """Keystrokes within the delay produce one remote request."""
        search_fn = Mock(return_value=[])
        debouncer, delivered = self._debouncer(timers, search_fn=search_fn)

        for query in ("att", "atte", "atten", "attention"):
            debouncer.submit(query)
        for timer in timers.timers:
            timer.fire()

        search_fn.assert_called_once_with("attention")
        assert [q for q, _ in delivered] == ["attention"]
        assert debouncer.generation == 4

    def test_stale_results_discarded(self, timers):
        """Results arriving after a newer query was typed are dropped."""
        debouncer, delivered = self._debouncer(timers)

        def slow_search(query):
            debouncer.submit("newer query")
            return [StructuredPaperData(title="stale")]

        debouncer.search_fn = slow_search
        debouncer.submit("old query")
        timers.timers[0].fire()

        assert delivered == []
        assert debouncer.last_search == ""

    def test_error_reported(self, timers):
        errors = []
        search_fn = Mock(side_effect=FetchError("semantic_scholar", message="HTTP 429"))
        debouncer, delivered = self._debouncer(timers, search_fn=search_fn, on_error=errors.append)

        debouncer.submit("attention")
        timers.timers[0].fire()

        assert delivered == []
        assert len(errors) == 1
        assert errors[0].source == "semantic_scholar"


@pytest.fixture
def manager(local_entries):
    manager = Mock()
    manager.config = Config()
    manager.load_local_papers.return_value = local_entries
    manager.semantic_scholar.search.return_value = [
        StructuredPaperData(title="Attention Is Not Explanation", url="https://www.semanticscholar.org/paper/a"),
        StructuredPaperData(title="Attention Is All You Need", url="https://www.semanticscholar.org/paper/b"),
    ]
    return manager


class TestPaperSearch:
    """Tests for PaperSearch."""

    def test_loads_local_papers(self, manager, timers):
        search = PaperSearch(manager, timer_factory=timers)

        manager.load_local_papers.assert_called_once()
        assert len(search.local_papers) == 2
        assert search.debouncer.delay == 0.25
        assert search.debouncer.min_query_length == 3

    def test_local_suggestions_only_before_remote(self, manager, timers):
        search = PaperSearch(manager, timer_factory=timers)

        suggestions = search.get_suggestions("attention")

        assert [s.result_type for s in suggestions] == [RESULT_LOCAL]

    def test_remote_suggestions_after_dispatch(self, manager, timers):
        updates = []
        search = PaperSearch(manager, on_update=lambda: updates.append(True), timer_factory=timers)

        search.request_remote("attention")
        timers.timers[0].fire()
        suggestions = search.get_suggestions("attention")

        assert updates == [True]
        assert [s.result_type for s in suggestions] == [
            RESULT_LOCAL,
            RESULT_SEMANTIC_SCHOLAR,
            RESULT_SEMANTIC_SCHOLAR,
        ]
        assert [s.is_first_s2_result for s in suggestions] == [False, True, False]
        assert suggestions[1].s2_url == "https://www.semanticscholar.org/paper/a"

    def test_remote_results_belong_to_their_query(self, manager, timers):
        search = PaperSearch(manager, timer_factory=timers)
        search.request_remote("attention")
        timers.timers[0].fire()

        suggestions = search.get_suggestions("attention is")

        assert all(s.result_type == RESULT_LOCAL for s in suggestions)

    def test_remote_error_notifies(self, manager, timers):
        manager.semantic_scholar.search.side_effect = FetchError("semantic_scholar", message="offline")
        search = PaperSearch(manager, timer_factory=timers)

        search.request_remote("attention")
        timers.timers[0].fire()

        manager.notify.assert_called_once_with("Failed to fetch from semantic_scholar: offline")

    def test_choose_local(self, manager, timers):
        search = PaperSearch(manager, timer_factory=timers)
        result = search.get_suggestions("residual")[0]

        assert search.choose(result) is None
        manager.open_file.assert_called_once_with("Papers/Deep Residual Learning.md")

    def test_choose_local_without_path(self, manager, timers):
        search = PaperSearch(manager, timer_factory=timers)
        result = SearchResult(paper=StructuredPaperData(title="T"), result_type=RESULT_LOCAL)

        search.choose(result)

        manager.notify.assert_called_once_with(NOTICE_LOCAL_FILE_NOT_FOUND)
        manager.open_file.assert_not_called()

    def test_choose_remote(self, manager, timers):
        search = PaperSearch(manager, timer_factory=timers)
        paper = StructuredPaperData(title="T", url="https://www.semanticscholar.org/paper/x")
        result = SearchResult(paper=paper, result_type=RESULT_SEMANTIC_SCHOLAR, s2_url=paper.url)

        report = search.choose(result)

        manager.notify.assert_called_once_with(NOTICE_DOWNLOAD_FROM_S2)
        manager.save_paper.assert_called_once_with(paper)
        assert report is manager.save_paper.return_value

    def test_choose_remote_without_url(self, manager, timers):
        search = PaperSearch(manager, timer_factory=timers)
        result = SearchResult(paper=StructuredPaperData(title="T"), result_type=RESULT_SEMANTIC_SCHOLAR)

        assert search.choose(result) is None
        manager.notify.assert_called_once_with(NOTICE_S2_URL_NOT_FOUND)
        manager.save_paper.assert_not_called()
