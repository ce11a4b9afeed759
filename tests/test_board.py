from supporter_board.board import (
    STATUS_CONNECTION_FAILED,
    STATUS_DATA_ERROR,
    STATUS_SYNC_ERROR,
    STATUS_SYNCING,
)
from supporter_board.colors import Color

from conftest import FakeRegion, roster_json

NAMES = ["Alice", "Bob", "Cleo"]


def loaded_board(make_board, loader, supporters=NAMES, **board):
    instance = make_board(**board)
    instance.start()
    loader.succeed(roster_json(supporters))
    return instance


class TestStartup:
    def test_missing_url_is_a_configuration_error(self, make_board, make_config, loader, status):
        board = make_board(config=make_config(urls=()))
        board.start()
        assert status.text == "Configuration Error: No URL provided"
        board.on_interact()
        board.on_tick(1000)
        assert loader.calls == 0
        assert status.text == "Configuration Error: No URL provided"

    def test_start_fetches_and_shows_title(self, make_board, loader, status, header, region):
        board = make_board()
        board.start()
        assert loader.calls == 1
        assert status.text == STATUS_SYNCING
        assert header.text == "Our Supporters"
        assert region.font_size == 24.0
        assert not board.has_data


class TestPaging:
    def test_pages_and_status(self, make_board, loader, region, status, header):
        board = loaded_board(make_board, loader, lines_per_page=2)
        assert board.total_pages == 2
        assert region.text == board.pages[0]
        assert status.text == "Page 1 / 2"
        assert header.text == "Our Supporters (3)"

    def test_single_page_shows_footer(self, make_board, loader, status):
        loaded_board(make_board, loader)
        assert status.text == "Supporter Board"

    def test_tick_advances_and_wraps(self, make_board, loader, status):
        board = loaded_board(make_board, loader, lines_per_page=2)
        board.on_tick(9.5)
        assert board.current_page == 0
        board.on_tick(0.5)
        assert board.current_page == 1
        assert status.text == "Page 2 / 2"
        board.on_tick(10)
        assert board.current_page == 0
        assert status.text == "Page 1 / 2"

    def test_interact_flips_and_resets_timer(self, make_board, loader):
        board = loaded_board(make_board, loader, lines_per_page=2)
        board.on_tick(9)
        board.on_interact()
        assert board.current_page == 1
        board.on_tick(9)
        assert board.current_page == 1
        assert loader.calls == 1

    def test_single_page_interact_does_nothing(self, make_board, loader, region):
        board = loaded_board(make_board, loader)
        shown = list(region.texts)
        board.on_interact()
        assert region.texts == shown
        assert loader.calls == 1

    def test_passive_refresh_keeps_cursor(self, make_board, loader):
        board = loaded_board(make_board, loader, lines_per_page=2)
        board.next_page()
        board.load_data()
        loader.succeed(roster_json(NAMES + ["Dan"]))
        assert board.current_page == 1

    def test_interactive_refresh_resets_cursor(self, make_board, loader):
        board = loaded_board(make_board, loader, lines_per_page=2)
        board.next_page()
        board.load_data(interactive=True)
        loader.succeed(roster_json(NAMES))
        assert board.current_page == 0

    def test_shrinking_roster_clamps_cursor(self, make_board, loader):
        board = loaded_board(make_board, loader, lines_per_page=2)
        board.next_page()
        board.load_data()
        loader.succeed(roster_json(["Solo"]))
        assert board.total_pages == 1
        assert board.current_page == 0

    def test_empty_roster(self, make_board, loader, region, status):
        board = loaded_board(make_board, loader, supporters=[])
        assert board.has_data
        assert board.pages == ("No supporters yet!",)
        assert region.text == "No supporters yet!"
        assert status.text == "No supporters yet!"


class TestRemoteSettings:
    def test_title_and_total_override(self, make_board, loader, header):
        board = make_board()
        board.start()
        loader.succeed(roster_json(NAMES, board_settings={"board_title": "Patrons"}, total_supporters=120))
        assert header.text == "Patrons (120)"
        assert board.settings.title == "Patrons"

    def test_smart_paging_uses_display_height(self, make_board, loader):
        board = make_board(display=FakeRegion(height=300))
        board.start()
        settings = {"smart_paging": True, "content_font_size": 20}
        loader.succeed(roster_json([f"n{i}" for i in range(30)], board_settings=settings))
        assert board.display.font_size == 20
        assert board.lines_per_page == 12
        assert all(len(page.split("\n")) <= 12 for page in board.pages)

    def test_visuals_follow_settings(self, make_board, loader, visuals):
        board = make_board()
        board.start()
        loader.succeed(roster_json(NAMES, board_settings={"header_color": "#FF0000", "bg_opacity": 0.5}))
        assert visuals.calls[-1] == (Color(1.0, 0.0, 0.0), board.settings.text_color, 0.5)

    def test_passive_refresh_shows_syncing(self, make_board, loader, status):
        loaded_board(make_board, loader).on_tick(300)
        assert loader.calls == 2
        assert status.text == STATUS_SYNCING
        loader.succeed(roster_json(NAMES))
        assert status.text == "Supporter Board"

    def test_refresh_interval_follows_settings(self, make_board, loader):
        board = make_board()
        board.start()
        loader.succeed(roster_json(NAMES, board_settings={"refresh_interval": 120}))
        board.on_tick(119)
        assert loader.calls == 1
        board.on_tick(1)
        assert loader.calls == 2


class TestFailures:
    def test_data_error_without_data(self, make_board, loader, status):
        board = make_board()
        board.start()
        loader.succeed("not json")
        assert status.text == STATUS_DATA_ERROR
        assert not board.has_data

    def test_sync_error_keeps_last_pages(self, make_board, loader, status, region):
        board = loaded_board(make_board, loader)
        pages = board.pages
        board.load_data()
        loader.succeed('{"members": []}')
        assert status.text == STATUS_SYNC_ERROR
        assert board.pages == pages
        assert region.text == pages[0]

    def test_connection_failure_then_retry_on_interact(self, make_board, loader, status):
        board = make_board()
        board.start()
        loader.fail("refused")
        assert status.text == STATUS_CONNECTION_FAILED
        board.on_interact()
        assert loader.calls == 2
        assert status.text == STATUS_SYNCING

    def test_interact_while_loading_coalesces(self, make_board, loader):
        board = make_board()
        board.start()
        board.on_interact()
        board.on_interact()
        assert loader.calls == 1
        assert board.scheduler.state.interactive

    def test_non_finite_settings_are_a_data_error(self, make_board, loader, status):
        board = make_board()
        board.start()
        loader.succeed('{"supporters": ["A"], "board_settings": {"names_per_page": Infinity}}')
        assert status.text == STATUS_DATA_ERROR
        assert not board.has_data

    def test_non_finite_total_is_a_sync_error(self, make_board, loader, status):
        board = loaded_board(make_board, loader)
        board.load_data()
        loader.succeed('{"supporters": ["A"], "total_supporters": NaN}')
        assert status.text == STATUS_SYNC_ERROR
        board.on_tick(300)
        assert loader.calls == 3

    def test_failure_with_data_reports_next_refresh(self, make_board, loader, status):
        board = loaded_board(make_board, loader)
        board.load_data()
        loader.fail("refused")
        assert status.text == "Sync Failed (Retrying in 300s)"
        assert board.has_data

    def test_failure_with_data_reports_retry(self, make_board, make_config, loader, status):
        board = make_board(config=make_config(retry_delay=5))
        board.start()
        loader.succeed(roster_json(NAMES))
        board.load_data()
        loader.fail("refused")
        assert status.text == "Sync Failed (Retrying in 5s)"
        board.on_tick(5)
        assert loader.calls == 3
