from datetime import date, datetime, timezone

import pytest

from schemas import ColorValue, MoodEntry
from store import ENTRIES_KEY, decode_entries
from views import DetailEditModel, date_label


class TestGridViewModel:
    def test_sorted_by_date_ascending(self, grid, make_entry):
        late, early, mid = make_entry(20), make_entry(2), make_entry(9)
        for e in (late, early, mid):
            grid.store.add_entry(e)
        assert grid.sorted_entries() == [early, mid, late]
        # display order is never written back
        assert grid.store.entries == [late, early, mid]

    def test_sort_is_stable_on_equal_dates(self, grid, make_entry):
        a, b, c = make_entry(5, notes="a"), make_entry(5, notes="b"), make_entry(1)
        for e in (a, b, c):
            grid.store.add_entry(e)
        assert grid.sorted_entries() == [c, a, b]

    def test_average_of_empty_is_zero(self, grid):
        assert grid.average_rating() == 0.0
        assert grid.average_label() == "Avg: 0.00"

    def test_average_rating(self, grid, make_entry):
        for rating in (1, 2, 2):
            grid.store.add_entry(make_entry(1, rating))
        assert grid.average_rating() == pytest.approx(5 / 3)
        assert grid.average_label() == "Avg: 1.67"

    def test_add_then_delete_scenario(self, grid):
        e1 = grid.add_new_entry()
        e2 = grid.add_new_entry()
        grid.open_detail(e2.id).set_rating(5)
        grid.close_detail()
        assert e1.rating == 3
        assert grid.average_rating() == 4.0

        grid.toggle_edit_mode()
        grid.toggle_selection(e1.id)
        grid.delete_selected()
        assert grid.store.entries == [e2]
        assert grid.average_rating() == 5.0
        assert grid.selection == set()

    def test_toggle_selection_twice_is_identity(self, grid, make_entry):
        entry = make_entry(1)
        grid.store.add_entry(entry)
        grid.toggle_edit_mode()
        before = set(grid.selection)
        assert grid.toggle_selection(entry.id) is True
        assert grid.is_selected(entry.id)
        assert grid.toggle_selection(entry.id) is False
        assert grid.selection == before

    def test_edit_mode_toggle_clears_selection(self, grid, make_entry):
        entry = make_entry(1)
        grid.store.add_entry(entry)
        assert grid.toggle_edit_mode() is True
        grid.toggle_selection(entry.id)
        assert grid.toggle_edit_mode() is False
        assert grid.selection == set()
        grid.toggle_edit_mode()
        assert grid.selection == set()

    def test_delete_everything(self, grid, make_entry):
        for day in (1, 2, 3):
            grid.store.add_entry(make_entry(day))
        grid.toggle_edit_mode()
        for e in list(grid.store.entries):
            grid.toggle_selection(e.id)
        assert grid.delete_selected() == 3
        assert grid.store.entries == []
        assert grid.selection == set()
        assert decode_entries(grid.store.blobs.get(ENTRIES_KEY)) == []

    def test_tap_opens_detail_when_browsing(self, grid, make_entry):
        entry = make_entry(1)
        grid.store.add_entry(entry)
        detail = grid.tap(entry.id)
        assert isinstance(detail, DetailEditModel)
        assert grid.detail is detail
        assert detail.entry is entry

    def test_tap_selects_when_editing(self, grid, make_entry):
        entry = make_entry(1)
        grid.store.add_entry(entry)
        grid.toggle_edit_mode()
        assert grid.tap(entry.id) is None
        assert grid.is_selected(entry.id)
        assert grid.detail is None

    def test_opening_another_entry_closes_the_first(self, grid, blobs, make_entry):
        a, b = make_entry(1), make_entry(2)
        grid.store.add_entry(a)
        grid.store.add_entry(b)
        grid.open_detail(a.id).set_notes("edited a")
        second = grid.open_detail(b.id)
        assert grid.detail is second
        assert MoodEntry.model_validate_json(blobs.get(str(a.id))).notes == "edited a"
        assert decode_entries(blobs.get(ENTRIES_KEY))[0].notes == "edited a"
        grid.close_detail()
        assert grid.detail is None
        assert blobs.get(str(b.id)) is not None

    def test_open_unknown_entry(self, grid):
        with pytest.raises(KeyError):
            grid.open_detail(MoodEntry.new().id)

    def test_circles(self, grid, make_entry):
        late, early = make_entry(19, 5), make_entry(2, 1)
        grid.store.add_entry(late)
        grid.store.add_entry(early)
        grid.toggle_edit_mode()
        grid.toggle_selection(late.id)

        circles = grid.circles()
        assert [c["id"] for c in circles] == [str(early.id), str(late.id)]
        assert circles[1] == {
            "id": str(late.id),
            "label": "Oct 19",
            "rating": 5,
            "gradient": ["#007affff", "#af52deff"],
            "selected": True,
        }
        assert circles[0]["selected"] is False


class TestDetailEditModel:
    @pytest.fixture
    def entry(self, store, make_entry):
        entry = make_entry(10, 3, hour=18)
        store.add_entry(entry)
        return entry

    @pytest.fixture
    def detail(self, store, entry):
        return DetailEditModel(store, entry.id)

    def test_edits_are_shared_with_collection(self, store, entry, detail):
        detail.set_notes("long walk")
        detail.set_gradient_start((1, 0, 0, 1))
        detail.set_gradient_end("#00ff00")
        assert store.entries[0].notes == "long walk"
        assert store.entries[0].color_gradient_start == ColorValue(red=1, green=0, blue=0, opacity=1)
        assert store.entries[0].color_gradient_end.green == 1.0
        assert len(store.entries) == 1

    def test_unusable_color_becomes_default(self, detail):
        detail.set_gradient_end(object())
        assert detail.entry.color_gradient_end == ColorValue()

    def test_set_date_keeps_time_of_day(self, detail):
        detail.set_date(date(2023, 2, 28))
        assert detail.entry.date == datetime(2023, 2, 28, 18, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value, expected", [(0, 1), (1, 1), (4, 4), (5, 5), (12, 5), (-3, 1)])
    def test_rating_bounded_by_stepper(self, detail, value, expected):
        detail.set_rating(value)
        assert detail.entry.rating == expected

    def test_stepper_stops_at_bounds(self, detail):
        for _ in range(5):
            detail.increment_rating()
        assert detail.entry.rating == 5
        for _ in range(10):
            detail.decrement_rating()
        assert detail.entry.rating == 1

    def test_nothing_saved_until_close(self, store, blobs, entry, detail):
        detail.set_notes("draft")
        assert decode_entries(blobs.get(ENTRIES_KEY))[0].notes == ""
        detail.close()
        assert decode_entries(blobs.get(ENTRIES_KEY))[0].notes == "draft"
        assert MoodEntry.model_validate_json(blobs.get(str(entry.id))).notes == "draft"

    def test_entry_deleted_underneath(self, store, entry, detail):
        store.delete_entries({entry.id})
        with pytest.raises(KeyError):
            detail.entry


def test_date_label():
    assert date_label(datetime(2024, 3, 5)) == "Mar 5"
