import sqlite3
from pathlib import Path

import pytest

import cafe


@pytest.fixture(autouse=True)
def keep_sigint(monkeypatch):
    monkeypatch.setattr(cafe.signal, "signal", lambda *args: None)


def test_read_choice_reprompts(feed, capsys):
    feed("x", "", "2")
    assert cafe.read_choice() == 2
    assert capsys.readouterr().out.count("your input is invalid!") == 2


def test_ask_again_waits_for_yes_or_no(feed):
    feed("5", "1")
    assert cafe.ask_again("again?")
    feed("2")
    assert not cafe.ask_again("again?")


def test_dispatch_reports_errors_and_continues(capsys):
    def broken():
        raise sqlite3.OperationalError("no such table: Menu")

    screen = cafe.MenuScreen("test", [cafe.MenuOption(1, "broken", broken), cafe.MenuOption(9, "back", None)])
    assert screen.dispatch(1)
    assert "no such table: Menu" in capsys.readouterr().err
    assert screen.dispatch(4)
    assert "unrecognized choice!" in capsys.readouterr().out
    assert not screen.dispatch(9)


def test_manager_only_option_is_guarded(accounts):
    accounts.register("alice", "p1", "")
    accounts.log_in("alice", "p1")
    calls = []
    screen = cafe.MenuScreen("test", [cafe.MenuOption(6, "add", lambda: calls.append(1), True)], accounts)
    screen.dispatch(6)
    assert calls == []


def test_repeat_runs_until_declined(feed):
    calls = []
    feed("1", "2")
    cafe.repeat(lambda: calls.append(1), "more?")()
    assert len(calls) == 2


def test_get_config(monkeypatch, tmp_path):
    monkeypatch.setenv("CAFE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("CAFE_DB_PASSWORD", raising=False)
    config = cafe.get_config(["cafedb", "5432", "alice"])
    assert config.host == "localhost"
    assert config.password == ""
    assert config.database_path == str(tmp_path / "cafedb.db")
    assert config.connection_url == f"sqlite:///{tmp_path / 'cafedb.db'}"
    with pytest.raises(ValueError, match="usage"):
        cafe.get_config(["cafedb"])


def test_main_wrong_argument_count(capsys):
    with pytest.raises(SystemExit) as exc:
        cafe.main(["cafedb", "5432"])
    assert exc.value.code == 1
    assert "usage" in capsys.readouterr().err


def test_main_connect_failure(monkeypatch, tmp_path):
    monkeypatch.setenv("CAFE_DATA_DIR", str(tmp_path / "missing"))
    with pytest.raises(SystemExit) as exc:
        cafe.main(["cafedb", "5432", "alice"])
    assert exc.value.code == 1


def test_main_stops_on_end_of_input(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("CAFE_DATA_DIR", str(tmp_path))

    def eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)
    cafe.main(["cafedb", "5432", "alice"])
    assert "bye!" in capsys.readouterr().out


def test_full_session(monkeypatch, tmp_path, feed, capsys):
    monkeypatch.setenv("CAFE_DATA_DIR", str(tmp_path))
    feed(
        "1", "alice", "p1", "555-1000",        # create user
        "2", "manager", "manager",             # log in
        "1",                                   # goto menu
        "6", "Latte", "Coffee", "3.50", "milky", "latte.png", "2",
        "1", "Latte", "2",                     # search by name
        "9",                                   # back
        "3",                                   # place order (not available)
        "9",                                   # log out
        "2", "alice", "p1",
        "1", "7",                              # customer tries delete
        "9", "9",
        "9",                                   # exit
    )
    cafe.main(["cafedb", "5432", "tester"])
    out = capsys.readouterr().out
    assert "user successfully created!" in out
    assert "item added!" in out
    assert "3.50" in out
    assert "placing orders is not available yet" in out
    assert "manager privileges required" in out
    assert "bye!" in out

    db = cafe.CafeDatabase.connect(cafe.get_config(["cafedb", "5432", "tester"]))
    try:
        assert db.execute_query("SELECT * FROM Menu WHERE itemName=?;", ("Latte",)) == 1
        assert db.execute_query("SELECT * FROM USERS WHERE login=?;", ("alice",)) == 1
    finally:
        db.cleanup()
    assert Path(tmp_path / "cafedb.db").exists()


def test_dispatch_survives_huge_price(manager, db, feed, capsys):
    menu = cafe.MenuManager(db, manager)
    screen = cafe.MenuScreen("test", [cafe.MenuOption(6, "add", menu.add_item, True)], manager)
    feed("Gold Latte", "Coffee", "1e30")
    assert screen.dispatch(6)
    assert "invalid price" in capsys.readouterr().out


def test_sigint_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as exc:
        cafe.SignalHandler.sigint(None, None)
    assert exc.value.code == 0
    assert "next time, use 9 to exit!" in capsys.readouterr().out
