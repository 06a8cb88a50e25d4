from __future__ import annotations

from typing import Callable, Dict

from application.services import (
    OperationResult,
    change_password,
    delete_account,
    deposit_to_wallet,
    describe_account,
    link_bank_account,
    load_user,
    login_user,
    register_user,
    reserve_session,
    save_user,
)
from domain.directory import UserDirectory
from domain.repositories import RecordStore
from interfaces.cli.parsing import parse_age_limit, parse_amount, parse_birth_date

MENU_TEXT = (
    "\nMain Menu:\n"
    "1 - Register a new user\n"
    "2 - Login\n"
    "3 - Change password\n"
    "4 - Delete user account\n"
    "5 - Save user to file\n"
    "6 - Load user from file\n"
    "7 - Link a bank account\n"
    "8 - Deposit to wallet\n"
    "9 - Reserve a session\n"
    "10 - Show account summary\n"
    "0 - Exit"
)


def create_menu(
    directory: UserDirectory,
    store: RecordStore,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> Callable[[], None]:
    """
    Build the interactive menu loop and return it.

    This module contains only console concerns: prompting, parsing the
    answers and printing the message of each `OperationResult`. Reading
    past the end of input ends the loop like choosing "0".
    """

    def show(result: OperationResult) -> None:
        write(result.message)

    def handle_register() -> None:
        username = read_line("Enter username: ")
        password = read_line("Enter password: ")
        phone_number = read_line("Enter phone number (optional): ").strip()
        try:
            birth_date = parse_birth_date(read_line("Enter birth date (optional, yyyy-mm-dd): "))
        except ValueError as exc:
            write(f"Error: {exc}")
            return
        show(register_user(directory, username, password, phone_number or None, birth_date))

    def handle_login() -> None:
        username = read_line("Enter username: ")
        password = read_line("Enter password: ")
        show(login_user(directory, username, password))

    def handle_change_password() -> None:
        username = read_line("Enter username: ")
        old_password = read_line("Enter current password: ")
        new_password = read_line("Enter new password: ")
        show(change_password(directory, username, old_password, new_password))

    def handle_delete() -> None:
        username = read_line("Enter username: ")
        password = read_line("Enter password: ")
        show(delete_account(directory, store, username, password))

    def handle_save() -> None:
        show(save_user(directory, store, read_line("Enter username: ")))

    def handle_load() -> None:
        show(load_user(directory, store, read_line("Enter username: ")))

    def handle_link_account() -> None:
        username = read_line("Enter username: ")
        password = read_line("Enter password: ")
        account_number = read_line("Enter account number: ").strip()
        try:
            opening_balance = parse_amount(read_line("Enter account balance: "))
        except ValueError as exc:
            write(f"Error: {exc}")
            return
        show(link_bank_account(directory, username, password, account_number, opening_balance))

    def handle_deposit() -> None:
        username = read_line("Enter username: ")
        password = read_line("Enter password: ")
        account_number = read_line("Enter account number: ").strip()
        try:
            amount = parse_amount(read_line("Enter amount: "))
        except ValueError as exc:
            write(f"Error: {exc}")
            return
        show(deposit_to_wallet(directory, username, password, account_number, amount))

    def handle_reserve() -> None:
        username = read_line("Enter username: ")
        password = read_line("Enter password: ")
        session_id = read_line("Enter session id: ").strip()
        try:
            price = parse_amount(read_line("Enter session price: "))
            age_limit = parse_age_limit(read_line("Enter age limit (optional): "))
        except ValueError as exc:
            write(f"Error: {exc}")
            return
        show(reserve_session(directory, username, password, session_id, price, age_limit))

    def handle_summary() -> None:
        username = read_line("Enter username: ")
        password = read_line("Enter password: ")
        show(describe_account(directory, username, password))

    handlers: Dict[str, Callable[[], None]] = {
        "1": handle_register,
        "2": handle_login,
        "3": handle_change_password,
        "4": handle_delete,
        "5": handle_save,
        "6": handle_load,
        "7": handle_link_account,
        "8": handle_deposit,
        "9": handle_reserve,
        "10": handle_summary,
    }

    def run() -> None:
        while True:
            write(MENU_TEXT)
            try:
                choice = read_line("Enter your choice: ").strip()
                if choice == "0":
                    write("Exiting the program. Goodbye!")
                    return

                handler = handlers.get(choice)
                if handler is None:
                    write("Invalid choice. Please try again.")
                    continue
                handler()
            except EOFError:
                write("Exiting the program. Goodbye!")
                return

    return run
