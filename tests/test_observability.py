"""Tests for logfire tracing of circulation operations."""

from pathlib import Path
from unittest.mock import MagicMock, patch

from conftest import make_visitor
from library_management.config import LibraryConfig
from library_management.database import CirculationDesk
from library_management.models import BookType, Section
from library_management.observability import (
    initialize_observability,
    trace_operation,
    tracing_enabled,
)


class TestInitialization:
    """Test logfire configuration."""

    def test_disabled_by_default(self, tmp_path: Path):
        with patch("library_management.observability.logfire") as mock_logfire:
            assert initialize_observability(LibraryConfig(data_dir=tmp_path)) is False

        mock_logfire.configure.assert_not_called()
        assert tracing_enabled() is False

    def test_enabled(self, tmp_path: Path):
        config = LibraryConfig(data_dir=tmp_path, observability_enabled=True)

        with patch("library_management.observability.logfire") as mock_logfire:
            assert initialize_observability(config) is True

        mock_logfire.configure.assert_called_once()
        kwargs = mock_logfire.configure.call_args.kwargs
        assert kwargs["send_to_logfire"] == "if-token-present"
        assert kwargs["service_name"] == "library-management"
        assert tracing_enabled() is True


class TestTraceOperation:
    """Test the span decorator."""

    def test_passthrough_when_disabled(self):
        @trace_operation("noop")
        def add(a, b):
            return a + b

        with patch("library_management.observability.logfire") as mock_logfire:
            assert add(1, 2) == 3

        mock_logfire.span.assert_not_called()

    def test_desk_operations_open_spans(self, tmp_path: Path, desk: CirculationDesk):
        desk.books.add("A", "P", "I1", BookType.ART, Section.S1, 1)
        desk.visitors.add(make_visitor("alice"))

        with patch("library_management.observability.logfire") as mock_logfire:
            span = MagicMock()
            mock_logfire.span.return_value.__enter__.return_value = span
            initialize_observability(LibraryConfig(data_dir=tmp_path, observability_enabled=True))

            outcome = desk.borrow("I1", "I1-1", 1001)

        assert outcome
        name = mock_logfire.span.call_args.args[0]
        attributes = mock_logfire.span.call_args.kwargs
        assert name == "library.borrow"
        assert attributes["input.copy_id"] == "I1-1"
        assert attributes["input.visitor_id"] == 1001
        span.set_attribute.assert_any_call("outcome.ok", True)

    def test_refusal_reason_recorded(self, tmp_path: Path, desk: CirculationDesk):
        with patch("library_management.observability.logfire") as mock_logfire:
            span = MagicMock()
            mock_logfire.span.return_value.__enter__.return_value = span
            initialize_observability(LibraryConfig(data_dir=tmp_path, observability_enabled=True))

            desk.delete_visitor(1001)

        span.set_attribute.assert_any_call("outcome.ok", False)
        span.set_attribute.assert_any_call("outcome.reason", "NOT_FOUND")
