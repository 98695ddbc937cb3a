#!/usr/bin/env python3.13
#
#   ___ __ _ / _| ___
#  / __/ _` | |_ / _ \
# | (_| (_| |  _|  __/
#  \___\__,_|_|  \___|  ☕
#
# menu-driven cafe client: accounts + a manager-editable menu table
# --sql is used for syntax highlighting inline sql queries

import sqlite3
import signal
import sys
import os
import atexit
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Sequence

from dotenv import load_dotenv
from tabulate import tabulate
from termcolor import cprint, colored
from colorama import just_fix_windows_console as enable_windows_ansi_interpretation

# fix windows terminal misinterpreting ansi escape sequences
enable_windows_ansi_interpretation()

# constants
DEFAULT_HOST = "localhost"
CUSTOMER = "Customer"
MANAGER = "Manager"
NO_SEQUENCE_VALUE = -1
MAX_PRICE = Decimal("999999.99")
USAGE = "usage: cafe <dbname> <port> <user>"

ITEMS_BY_NAME = "SELECT * FROM Menu WHERE itemName=?;"
ITEMS_BY_TYPE = "SELECT * FROM Menu WHERE type=?;"

# update field choice -> column; identifiers can't be bound so this is the whitelist
UPDATABLE_FIELDS = {
    1: "itemName",
    2: "type",
    3: "price",
    4: "description",
    5: "imageURL",
}


def read_money(raw: bytes) -> Decimal:
    """MONEY column converter: two decimals, or the raw value if it can't be quantized"""
    value = Decimal(raw.decode())
    try:
        return value.quantize(Decimal("0.01"))
    except InvalidOperation:
        return value


# money values are stored through the MONEY declared type and read back with two decimals
sqlite3.register_adapter(Decimal, str)
sqlite3.register_converter("MONEY", read_money)


# helpers
def safe_int(value: str, minimum: int | None = None):
    """return int value or none if invalid / below minimum"""
    try:
        v = int(value)
        if minimum is not None and v < minimum:
            return None
        return v
    except ValueError:
        return None


def parse_price(value) -> Decimal | None:
    """return a positive two-decimal price up to MAX_PRICE or none"""
    try:
        p = Decimal(str(value).strip())
        if not p.is_finite() or p <= 0 or p > MAX_PRICE:
            return None
        return p.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


def log_error(message) -> None:
    """print an error to stderr"""
    cprint(str(message), "red", file=sys.stderr)


def as_text(value) -> str | None:
    """render a column value as text, keeping null as none"""
    if value is None:
        return None
    return str(value)


# configuration
@dataclass(frozen=True)
class CafeConfig:
    dbname: str
    port: str
    user: str
    password: str = ""
    host: str = DEFAULT_HOST
    data_dir: str = "."

    @property
    def database_path(self) -> str:
        if self.dbname == ":memory:":
            return self.dbname
        return str(Path(self.data_dir) / f"{self.dbname}.db")

    @property
    def connection_url(self) -> str:
        return f"sqlite:///{self.database_path}"


def _getenv(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def get_config(args: Sequence[str]) -> CafeConfig:
    """
    build config from the three cli arguments.
    - loads `.env` if present; real environment variables win
    - CAFE_DATA_DIR: directory holding the database file (default: cwd)
    - CAFE_DB_PASSWORD: connection password (default: empty)
    """
    if len(args) != 3:
        raise ValueError(USAGE)
    load_dotenv(override=False)
    dbname, port, user = args
    return CafeConfig(
        dbname=dbname,
        port=port,
        user=user,
        password=_getenv("CAFE_DB_PASSWORD") or "",
        data_dir=_getenv("CAFE_DATA_DIR", ".") or ".",
    )


# database layer
class ConnectionFailed(Exception):
    """raised when the database connection can't be opened"""


class CafeDatabase:
    """own the one sqlite connection and run statements over it"""
    def __init__(self, conn: sqlite3.Connection):
        self.conn: sqlite3.Connection | None = conn

    @classmethod
    def connect(cls, config: CafeConfig) -> "CafeDatabase":
        """open the connection and make sure schema + seed data exist"""
        db = None
        try:
            conn = sqlite3.connect(config.database_path, detect_types=sqlite3.PARSE_DECLTYPES)
            conn.autocommit = True
            db = cls(conn)
            db._create_schema()
            db._seed_manager()
        except sqlite3.Error as e:
            if db is not None:
                db.cleanup()
            raise ConnectionFailed(f"unable to connect to {config.connection_url}: {e}") from e
        return db

    def _create_schema(self):
        """create tables if missing"""
        self.conn.executescript(
            """--sql
            CREATE TABLE IF NOT EXISTS USERS (
                phoneNum TEXT,
                login TEXT PRIMARY KEY,
                password TEXT NOT NULL, -- clear text, hashing is out of scope
                favItems TEXT,
                type TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS Menu (
                itemName TEXT NOT NULL,
                type TEXT NOT NULL,
                price MONEY NOT NULL,
                description TEXT,
                imageURL TEXT
            );
            """
        )

    def _seed_manager(self):
        """create a default manager account if missing"""
        self.execute_update(
            """--sql
            INSERT OR IGNORE INTO USERS(phoneNum, login, password, favItems, type)
            VALUES (?,?,?,?,?);
            """,
            ("", "manager", "manager", "", MANAGER)
        )

    def _cursor(self, sql: str, params: Sequence = ()) -> sqlite3.Cursor:
        if self.conn is None:
            raise sqlite3.ProgrammingError("connection is closed")
        return self.conn.execute(sql, tuple(params))

    def execute_update(self, statement: str, params: Sequence = ()) -> int:
        """run insert/update/delete/ddl; returns affected row count"""
        cur = self._cursor(statement, params)
        try:
            return cur.rowcount
        finally:
            cur.close()

    def execute_query_and_print_result(self, query: str, params: Sequence = ()) -> int:
        """print header once then every row tab-separated; returns row count"""
        cur = self._cursor(query, params)
        try:
            header = [d[0] for d in cur.description or ()]
            count = 0
            for row in cur:
                if count == 0:
                    print("\t".join(header))
                print("\t".join("NULL" if v is None else str(v) for v in row))
                count += 1
            return count
        finally:
            cur.close()

    def execute_query_and_return_result(self, query: str, params: Sequence = ()) -> list[list[str | None]]:
        """return data rows only (no header), every value rendered as text"""
        cur = self._cursor(query, params)
        try:
            return [[as_text(v) for v in row] for row in cur]
        finally:
            cur.close()

    def query_columns(self, query: str, params: Sequence = ()) -> list[str]:
        """return the column names a query produces"""
        cur = self._cursor(query, params)
        try:
            return [d[0] for d in cur.description or ()]
        finally:
            cur.close()

    def execute_query(self, query: str, params: Sequence = ()) -> int:
        """return how many rows a query produces"""
        cur = self._cursor(query, params)
        try:
            return sum(1 for _ in cur)
        finally:
            cur.close()

    def get_current_sequence_value(self, name: str) -> int:
        """current autoincrement value for table `name`, -1 if it has none"""
        has_sequences = self.execute_query(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name='sqlite_sequence';"
        )
        if not has_sequences:
            return NO_SEQUENCE_VALUE
        cur = self._cursor("SELECT seq FROM sqlite_sequence WHERE name=?;", (name,))
        try:
            row = cur.fetchone()
        finally:
            cur.close()
        return int(row[0]) if row else NO_SEQUENCE_VALUE

    def cleanup(self):
        """close the connection if open; close errors are ignored"""
        if self.conn is None:
            return
        try:
            self.conn.close()
        except sqlite3.Error:
            pass
        self.conn = None


# accounts/auth
class AccountManager:
    """account creation, login and session state (plain text passwords, see non-goals)"""
    def __init__(self, db: CafeDatabase):
        self.db = db
        self.current_login: str | None = None
        self.current_type: str | None = None

    def is_manager(self) -> bool:
        """true if current user is a manager"""
        return (self.current_type or "").strip().lower() == MANAGER.lower()

    def require_manager(self) -> bool:
        """guard for manager-only actions"""
        if self.current_login is None:
            cprint("please log in first", "red"); return False
        if not self.is_manager():
            cprint("manager privileges required", "red"); return False
        return True

    def user_exists(self, login: str) -> bool:
        """check if login exists"""
        return self.db.execute_query("SELECT 1 FROM USERS WHERE login=?;", (login,)) > 0

    def register(self, login: str | None = None, password: str | None = None,
                 phone: str | None = None) -> bool:
        """create a new customer account"""
        if login is None:
            login = input("\tenter user login: ").strip()
        if password is None:
            password = input("\tenter user password: ").strip()
        if phone is None:
            phone = input("\tenter user phone: ").strip()
        if not login or not password:
            cprint("login and password are required", "red"); return False
        if self.user_exists(login):
            cprint("login already taken", "red"); return False
        self.db.execute_update(
            "INSERT INTO USERS(phoneNum, login, password, favItems, type) VALUES(?,?,?,?,?);",
            (phone, login, password, "", CUSTOMER)
        )
        cprint("user successfully created!", "green")
        return True

    def validate_login(self, login: str, password: str) -> str | None:
        """return the login if the credentials match a user, else none"""
        matches = self.db.execute_query(
            "SELECT * FROM USERS WHERE login=? AND password=?;",
            (login, password)
        )
        return login if matches > 0 else None

    def log_in(self, login: str | None = None, password: str | None = None) -> str | None:
        """check credentials and start a session"""
        if login is None:
            login = input("\tenter user login: ").strip()
        if password is None:
            password = input("\tenter user password: ").strip()
        if self.validate_login(login, password) is None:
            cprint("invalid login or password", "red")
            return None
        rows = self.db.execute_query_and_return_result(
            "SELECT type FROM USERS WHERE login=?;", (login,)
        )
        self.current_login = login
        self.current_type = rows[0][0] if rows else CUSTOMER
        prefix = "manager: " if self.is_manager() else ""
        cprint(f"logged in as {prefix}{colored(login, 'yellow', attrs=['bold'])}", "green")
        return login

    def log_out(self):
        """end the current session"""
        if self.current_login is None:
            cprint("no user logged in", "red")
            return
        cprint(f"logged out {self.current_login}", "green")
        self.current_login = None
        self.current_type = None

    def update_profile(self):
        cprint("profile updates are not available yet", "yellow")


# menu items
class MenuManager:
    """search and (manager-only) edit the Menu table"""
    def __init__(self, db: CafeDatabase, account_manager: AccountManager):
        self.db = db
        self.account_manager = account_manager

    # queries
    def find_items_by_name(self, name: str) -> list[list[str | None]]:
        return self.db.execute_query_and_return_result(ITEMS_BY_NAME, (name,))

    def find_items_by_type(self, item_type: str) -> list[list[str | None]]:
        return self.db.execute_query_and_return_result(ITEMS_BY_TYPE, (item_type,))

    def print_items(self, rows: list[list[str | None]], query: str, params: Sequence = ()):
        """print rows as a table, headed by the query's own column names"""
        if not rows:
            cprint("no items found", "yellow"); return
        headers = self.db.query_columns(query, params)
        print(tabulate(rows, headers=headers, missingval="-"))

    def search_by_name(self, name: str | None = None):
        """look up items by exact name"""
        if name is None:
            name = input("enter the name of the item you are looking for: ").strip()
        rows = self.find_items_by_name(name)
        self.print_items(rows, ITEMS_BY_NAME, (name,))
        return rows

    def search_by_type(self, item_type: str | None = None):
        """look up items by type"""
        if item_type is None:
            item_type = input("enter the type of item you are looking for: ").strip()
        rows = self.find_items_by_type(item_type)
        self.print_items(rows, ITEMS_BY_TYPE, (item_type,))
        return rows

    # manager actions
    def add_item(self, name: str | None = None, item_type: str | None = None,
                 price: str | None = None, description: str | None = None,
                 image_url: str | None = None) -> bool:
        """add a menu item"""
        if not self.account_manager.require_manager():
            return False
        if name is None:
            name = input("item name: ").strip()
        if item_type is None:
            item_type = input("item type: ").strip()
        if price is None:
            price = input("price: ").strip()
        p = parse_price(price)
        if p is None:
            cprint("invalid price", "red"); return False
        if description is None:
            description = input("description: ").strip()
        if image_url is None:
            image_url = input("image url: ").strip()
        if not name or not item_type:
            cprint("item name and type are required", "red"); return False
        self.db.execute_update(
            "INSERT INTO Menu(itemName, type, price, description, imageURL) VALUES(?,?,?,?,?);",
            (name, item_type, p, description, image_url)
        )
        cprint("item added!", "green")
        return True

    def delete_item(self, name: str | None = None) -> int:
        """delete every menu item with this name"""
        if not self.account_manager.require_manager():
            return 0
        if name is None:
            name = input("name of item to delete: ").strip()
        removed = self.db.execute_update("DELETE FROM Menu WHERE itemName=?;", (name,))
        if removed:
            cprint(f"removed {removed} item(s)", "green")
        else:
            cprint("not found", "red")
        return removed

    def update_item(self, name: str | None = None, field: str | int | None = None,
                    value: str | None = None) -> int:
        """change one column of every menu item with this name"""
        if not self.account_manager.require_manager():
            return 0
        if name is None:
            name = input("name of item to update: ").strip()
        if field is None:
            print("which one should be updated?")
            print("1. item name 2. item type 3. price 4. description 5. image url")
            field = read_choice()
        column = UPDATABLE_FIELDS.get(safe_int(str(field)))
        if column is None:
            cprint("invalid field", "red"); return 0
        if value is None:
            value = input(f"new {column}: ").strip()
        if column == "price":
            value = parse_price(value)
            if value is None:
                cprint("invalid price", "red"); return 0
        updated = self.db.execute_update(
            f"UPDATE Menu SET {column}=? WHERE itemName=?;",
            (value, name)
        )
        if updated:
            cprint(f"updated {updated} item(s)", "green")
        else:
            cprint("not found", "red")
        return updated


# console infrastructure
def read_choice() -> int:
    """keep prompting until an integer is entered"""
    while True:
        choice = safe_int(input(colored("please make your choice: ", "blue")).strip())
        if choice is not None:
            return choice
        cprint("your input is invalid!", "red")


def ask_again(question: str) -> bool:
    """1 = yes, 2 = no; anything else asks again"""
    while True:
        print(question)
        print("1. yes 2. no (go back to menu)")
        choice = read_choice()
        if choice in (1, 2):
            return choice == 1


def repeat(action: Callable[[], object], question: str) -> Callable[[], None]:
    """wrap an action so it runs until the user declines another round"""
    def run():
        while True:
            try:
                action()
            except (sqlite3.Error, ValueError, ArithmeticError) as e:
                log_error(e)
            if not ask_again(question):
                return
    return run


@dataclass
class MenuOption:
    """bind a menu number to a handler (none means leave the menu)"""
    choice: int
    label: str
    handler: Callable[[], object] | None
    manager_only: bool = False


class MenuScreen:
    """numbered console menu loop"""
    def __init__(self, title: str, options: list[MenuOption],
                 account_manager: AccountManager | None = None):
        self.title = title
        self.options = options
        self.account_manager = account_manager

    def show(self):
        cprint(self.title, "green", attrs=["bold"])
        print("-" * len(self.title))
        in_manager_section = False
        for opt in self.options:
            if opt.manager_only and not in_manager_section:
                print("-" * len(self.title))
                cprint("manager only", "yellow")
                in_manager_section = True
            print(f"{opt.choice}. {opt.label}")

    def dispatch(self, choice: int) -> bool:
        """run the chosen option; false means leave this menu"""
        opt = next((o for o in self.options if o.choice == choice), None)
        if opt is None:
            cprint("unrecognized choice!", "red")
            return True
        if opt.handler is None:
            return False
        if opt.manager_only and self.account_manager and not self.account_manager.require_manager():
            return True
        try:
            opt.handler()
        except (sqlite3.Error, ValueError, ArithmeticError) as e:
            log_error(e)
        return True

    def run(self):
        """main menu loop"""
        while True:
            print()
            self.show()
            if not self.dispatch(read_choice()):
                break


# application wiring
class Application:
    """bootstrap managers & menus"""
    def __init__(self, db: CafeDatabase):
        self.db = db
        self.account_manager = AccountManager(db)
        self.menu_manager = MenuManager(db, self.account_manager)

        self.main_menu = MenuScreen("main menu", [
            MenuOption(1, "create user", self.account_manager.register),
            MenuOption(2, "log in", self.log_in),
            MenuOption(9, "< exit", None),
        ])
        self.user_menu = MenuScreen("main menu", [
            MenuOption(1, "goto menu", self.item_menu_loop),
            MenuOption(2, "update profile", self.account_manager.update_profile),
            MenuOption(3, "place an order", self.place_order),
            MenuOption(4, "update an order", self.update_order),
            MenuOption(9, "log out", None),
        ])
        am, mm = self.account_manager, self.menu_manager
        self.item_menu = MenuScreen("menu list", [
            MenuOption(1, "search item by name", repeat(mm.search_by_name, "do you want to search another item?")),
            MenuOption(2, "search item by type", repeat(mm.search_by_type, "do you want to search another type?")),
            MenuOption(6, "add items", repeat(mm.add_item, "do you want to add more items?"), True),
            MenuOption(7, "delete items", repeat(mm.delete_item, "do you want to delete more items?"), True),
            MenuOption(8, "update items", repeat(mm.update_item, "do you want to update more items?"), True),
            MenuOption(9, "go back to main menu", None),
        ], am)

    def log_in(self):
        """log in, then stay in the user menu until log out"""
        if self.account_manager.log_in() is None:
            return
        self.user_menu.run()
        self.account_manager.log_out()

    def item_menu_loop(self):
        self.item_menu.run()

    @staticmethod
    def place_order():
        cprint("placing orders is not available yet", "yellow")

    @staticmethod
    def update_order():
        cprint("updating orders is not available yet", "yellow")

    def run(self):
        self.main_menu.run()


def greeting():
    cprint("""
*******************************************************
                 cafe ☕ user interface
*******************************************************
""", "green", attrs=["bold"])


# signal handler
class SignalHandler:
    """ctrl+c exits through the normal cleanup path"""
    @staticmethod
    def sigint(_, __):
        """handle ctrl+c"""
        cprint("\nnext time, use 9 to exit!", "yellow")
        sys.exit(0)


# entry point
def main(argv: Sequence[str] | None = None):
    """entrypoint wrapper"""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        config = get_config(args)
    except ValueError as e:
        log_error(e)
        sys.exit(1)

    signal.signal(signal.SIGINT, SignalHandler.sigint)
    greeting()
    print(f"connecting to database {config.dbname} on {config.host}:{config.port} as {config.user}...")
    print(f"connection url: {config.connection_url}\n")
    try:
        db = CafeDatabase.connect(config)
    except ConnectionFailed as e:
        log_error(f"error - {e}")
        print("make sure the database directory exists and is writable")
        sys.exit(1)
    atexit.register(db.cleanup)
    cprint("done", "green")

    try:
        Application(db).run()
    except EOFError:
        print()
    finally:
        print("disconnecting from database...", end="")
        db.cleanup()
        print("done\n\nbye!")


if __name__ == "__main__":
    main()
