import pytest

import cafe


@pytest.fixture
def config():
    return cafe.CafeConfig(dbname=":memory:", port="5432", user="tester")


@pytest.fixture
def db(config):
    database = cafe.CafeDatabase.connect(config)
    yield database
    database.cleanup()


@pytest.fixture
def accounts(db):
    return cafe.AccountManager(db)


@pytest.fixture
def manager(accounts):
    accounts.log_in("manager", "manager")
    return accounts


@pytest.fixture
def items(db, manager):
    return cafe.MenuManager(db, manager)


@pytest.fixture
def feed(monkeypatch):
    """answer input() prompts from a fixed list"""
    def _feed(*answers):
        it = iter(answers)
        monkeypatch.setattr("builtins.input", lambda prompt="": next(it))
    return _feed
