from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

import structlog

from domain.directory import UserDirectory
from domain.exceptions import (
    AuthenticationFailedError,
    DomainError,
    DuplicateUsernameError,
    InvalidCredentialError,
    RecordNotFoundError,
)
from domain.models import MAX_AMOUNT, Outcome, UserRecord
from domain.repositories import RecordStore

logger = structlog.get_logger(__name__)

INVALID_LOGIN_MESSAGE = "Invalid username or password!"

_LEDGER_MESSAGES = {
    Outcome.LINKED: "Bank account linked successfully.",
    Outcome.DEPOSITED: "Deposit successful.",
    Outcome.RESERVED: "Session reserved successfully.",
    Outcome.INVALID_ACCOUNT: "Invalid account.",
    Outcome.DUPLICATE_ACCOUNT: "This bank account is already linked.",
    Outcome.INVALID_AMOUNT: f"Amount must be greater than zero and at most {MAX_AMOUNT}.",
    Outcome.AGE_INELIGIBLE: "You do not meet the age requirement for this session.",
    Outcome.ALREADY_RESERVED: "This session is already reserved.",
}

_SUCCESS_OUTCOMES = {Outcome.LINKED, Outcome.DEPOSITED, Outcome.RESERVED}


@dataclass
class OperationResult:
    """
    Result of a user-facing operation.

    `outcome` is a machine-readable tag (an `Outcome` value or the name of
    a domain error); `message` is the text the shell prints.
    """

    success: bool
    message: str
    outcome: Optional[str] = None


def _failure(outcome: str, message: str) -> OperationResult:
    return OperationResult(success=False, message=message, outcome=outcome)


def _ledger_result(outcome: Outcome, insufficient_message: str) -> OperationResult:
    if outcome is Outcome.INSUFFICIENT_BALANCE:
        message = insufficient_message
    else:
        message = _LEDGER_MESSAGES[outcome]
    return OperationResult(
        success=outcome in _SUCCESS_OUTCOMES,
        message=message,
        outcome=outcome.value,
    )


def _invalid_login() -> OperationResult:
    return _failure(AuthenticationFailedError.__name__, INVALID_LOGIN_MESSAGE)


def register_user(
    directory: UserDirectory,
    username: str,
    password: str,
    phone_number: Optional[str] = None,
    birth_date: Optional[date] = None,
) -> OperationResult:
    """Create a new record and add it to the directory."""

    try:
        record = UserRecord.register(username, password, phone_number, birth_date)
        directory.add(record)
    except DomainError as exc:
        logger.info("registration_rejected", username=username, reason=type(exc).__name__)
        return _failure(type(exc).__name__, f"Error: {exc}")

    logger.info("user_registered", username=record.username, user_id=record.id)
    return OperationResult(success=True, message="User registered successfully!")


def login_user(directory: UserDirectory, username: str, password: str) -> OperationResult:
    record = directory.find_by_credentials(username, password)
    if record is None:
        logger.info("login_failed", username=username)
        return _invalid_login()

    logger.info("login_succeeded", username=username)
    return OperationResult(success=True, message=f"Welcome back, {username}!")


def change_password(
    directory: UserDirectory,
    username: str,
    old_password: str,
    new_password: str,
) -> OperationResult:
    """
    Replace a user's password after checking the current one.

    Unknown users and wrong passwords get the same message.
    """

    record = directory.find(username)
    if record is None:
        return _invalid_login()

    try:
        record.change_password(old_password, new_password)
    except AuthenticationFailedError:
        logger.info("password_change_rejected", username=username)
        return _invalid_login()
    except InvalidCredentialError as exc:
        return _failure(type(exc).__name__, f"Error: {exc}")

    logger.info("password_changed", username=username)
    return OperationResult(success=True, message="Password changed successfully!")


def delete_account(
    directory: UserDirectory,
    store: RecordStore,
    username: str,
    password: str,
) -> OperationResult:
    """
    Remove the user from the directory and drop any stored copy.

    A stored copy that cannot be removed is logged; the in-memory account
    is gone either way.
    """

    try:
        record = directory.remove(username, password)
    except AuthenticationFailedError:
        logger.info("account_deletion_rejected", username=username)
        return _invalid_login()

    try:
        store.delete(username)
    except DomainError as exc:
        logger.warning("stored_record_delete_failed", username=username, error=str(exc))

    logger.info("account_deleted", username=username, user_id=record.id)
    return OperationResult(success=True, message="User account deleted successfully!")


def link_bank_account(
    directory: UserDirectory,
    username: str,
    password: str,
    account_number: str,
    opening_balance,
) -> OperationResult:
    record = directory.find_by_credentials(username, password)
    if record is None:
        return _invalid_login()

    outcome = record.link_bank_account(account_number, opening_balance)
    logger.info("bank_account_link", username=username, outcome=outcome.value)
    if outcome is Outcome.INVALID_AMOUNT:
        return _failure(outcome.value, f"Opening balance must be between 0 and {MAX_AMOUNT}.")
    return _ledger_result(outcome, insufficient_message="")


def deposit_to_wallet(
    directory: UserDirectory,
    username: str,
    password: str,
    account_number: str,
    amount,
) -> OperationResult:
    """Move money from one of the user's bank accounts into their wallet."""

    record = directory.find_by_credentials(username, password)
    if record is None:
        return _invalid_login()

    outcome = record.deposit_to_wallet(account_number, amount)
    if outcome is Outcome.DEPOSITED:
        logger.info("deposit_completed", username=username, amount=str(amount))
    else:
        logger.info("deposit_rejected", username=username, outcome=outcome.value)
    return _ledger_result(outcome, insufficient_message="Insufficient balance.")


def reserve_session(
    directory: UserDirectory,
    username: str,
    password: str,
    session_id: str,
    price,
    age_limit: int,
    today: Optional[date] = None,
) -> OperationResult:
    """
    Reserve a session for the user, paid from the wallet.

    The user's age comes from the stored birth date; a user without one
    is treated as age 0 and can only book unrestricted sessions.
    """

    record = directory.find_by_credentials(username, password)
    if record is None:
        return _invalid_login()

    age = record.age_on(today or date.today())
    outcome = record.reserve_session(session_id, price, age_limit, age or 0)
    if outcome is Outcome.RESERVED:
        logger.info("session_reserved", username=username, session_id=session_id)
    else:
        logger.info(
            "reservation_rejected",
            username=username,
            session_id=session_id,
            outcome=outcome.value,
        )
    if outcome is Outcome.INVALID_AMOUNT:
        return _failure(outcome.value, f"Session price must be between 0 and {MAX_AMOUNT}.")
    return _ledger_result(
        outcome, insufficient_message="Insufficient balance in your wallet."
    )


def describe_account(directory: UserDirectory, username: str, password: str) -> OperationResult:
    """Render a short summary of the user's wallet, accounts and history."""

    record = directory.find_by_credentials(username, password)
    if record is None:
        return _invalid_login()

    ledger = record.ledger
    lines = [
        f"User: {record.username} ({record.subscription_level})",
        f"Wallet balance: {ledger.wallet_balance}",
    ]
    for account in ledger.bank_accounts:
        lines.append(f"Account {account.account_number}: {account.balance}")
    if ledger.reserved_sessions:
        lines.append("Reserved sessions: " + ", ".join(ledger.reserved_sessions))
    lines.append("Transactions:")
    if ledger.transaction_log:
        lines.extend(f"  - {entry}" for entry in ledger.transaction_log)
    else:
        lines.append("  (none)")
    return OperationResult(success=True, message="\n".join(lines))


def save_user(directory: UserDirectory, store: RecordStore, username: str) -> OperationResult:
    record = directory.find(username)
    if record is None:
        return _failure(RecordNotFoundError.__name__, "User not found!")

    try:
        store.save(record)
    except DomainError as exc:
        logger.warning("user_save_failed", username=username, error=str(exc))
        return _failure(type(exc).__name__, f"Error: could not save user: {exc}")

    logger.info("user_saved", username=username)
    return OperationResult(success=True, message="User saved to file successfully!")


def load_user(directory: UserDirectory, store: RecordStore, username: str) -> OperationResult:
    """Read a stored record back into the directory."""

    if username in directory:
        return _failure(
            DuplicateUsernameError.__name__,
            f"Error: Username '{username}' is already taken.",
        )

    try:
        record = store.load(username)
        directory.add(record)
    except RecordNotFoundError as exc:
        logger.info("user_load_failed", username=username, error=str(exc))
        return _failure(RecordNotFoundError.__name__, "Failed to load user from file.")
    except DuplicateUsernameError as exc:
        return _failure(type(exc).__name__, f"Error: {exc}")

    logger.info("user_loaded", username=username)
    return OperationResult(success=True, message="User loaded from file successfully!")
