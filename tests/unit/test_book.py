"""Unit tests for the shared position book."""
from __future__ import annotations

from watcher.models import Position
from watcher.services.book import PositionBook


class TestAddPage:
    def test_counts_new_positions(self, position_factory) -> None:
        book = PositionBook()
        added = book.add_page([position_factory(1), position_factory(2, max_liquidatable=5)])
        assert added == 2
        assert len(book) == 2
        assert list(book.liquidations) == [position_factory(2).loan_id]

    def test_positions_are_insert_only(self, position_factory) -> None:
        book = PositionBook()
        book.add_page([position_factory(1, max_liquidatable=0)])
        added = book.add_page([position_factory(1, max_liquidatable=9)])

        assert added == 0
        loan_id = position_factory(1).loan_id
        assert book.positions[loan_id].max_liquidatable == 0
        assert book.liquidations[loan_id].max_liquidatable == 9

    def test_liquidations_refreshed(self, position_factory) -> None:
        book = PositionBook()
        book.add_page([position_factory(1, max_liquidatable=5)])
        book.add_page([position_factory(1, max_liquidatable=8)])
        assert book.pending()[0].max_liquidatable == 8

    def test_skips_empty_id(self) -> None:
        book = PositionBook()
        assert book.add_page([Position(loan_id="", loan_token="0x", max_liquidatable=1)]) == 0
        assert book.liquidations == {}


class TestLifecycle:
    def test_clear_keeps_candidates(self, position_factory) -> None:
        book = PositionBook()
        book.add_page([position_factory(1), position_factory(2, max_liquidatable=5)])
        book.clear_positions()
        assert len(book) == 0
        assert len(book.liquidations) == 1

    def test_take_removes_candidate(self, position_factory) -> None:
        book = PositionBook()
        book.add_page([position_factory(1, max_liquidatable=5)])
        loan_id = position_factory(1).loan_id

        taken = book.take(loan_id)
        assert taken is not None
        assert taken.loan_id == loan_id
        assert book.take(loan_id) is None
        assert book.pending() == []

    def test_pending_is_snapshot(self, position_factory) -> None:
        book = PositionBook()
        book.add_page([position_factory(1, max_liquidatable=5)])
        snapshot = book.pending()
        book.take(position_factory(1).loan_id)
        assert len(snapshot) == 1
