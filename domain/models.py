from __future__ import annotations

import hashlib
import hmac
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Tuple

from .exceptions import (
    AuthenticationFailedError,
    InvalidCredentialError,
    InvalidUsernameError,
)

MIN_PASSWORD_LENGTH = 4
DEFAULT_SUBSCRIPTION_LEVEL = "Bronze"

_CENTS = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000000000")


def to_money(value) -> Decimal:
    """
    Coerce `value` to a Decimal with two fractional digits.

    Raises `ValueError` for anything that is not a finite number that
    fits the decimal context.
    """

    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value).quantize(_CENTS)
    except InvalidOperation as exc:
        raise ValueError(f"Not a valid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return amount


def _operation_amount(value) -> Optional[Decimal]:
    # None means the input cannot be used as an amount at all.
    try:
        amount = to_money(value)
    except ValueError:
        return None
    if abs(amount) > MAX_AMOUNT:
        return None
    return amount


class Outcome(str, Enum):
    """Tagged results of ledger operations."""

    LINKED = "linked"
    DEPOSITED = "deposited"
    RESERVED = "reserved"
    INVALID_ACCOUNT = "invalid_account"
    DUPLICATE_ACCOUNT = "duplicate_account"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_AMOUNT = "invalid_amount"
    AGE_INELIGIBLE = "age_ineligible"
    ALREADY_RESERVED = "already_reserved"


class CredentialVault:
    """
    Holds the one-way digest of a user's password.

    The plaintext is hashed on the way in and never kept. Digests are
    unsalted SHA-256 hex strings.
    """

    def __init__(self, digest: str) -> None:
        self._digest = digest

    @staticmethod
    def _hash(password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    @staticmethod
    def _validate(password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidCredentialError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            )

    @classmethod
    def create(cls, password: str) -> "CredentialVault":
        cls._validate(password)
        return cls(cls._hash(password))

    @classmethod
    def from_digest(cls, digest: str) -> "CredentialVault":
        """Rebuild a vault from a stored digest without re-hashing."""

        return cls(digest)

    @property
    def digest(self) -> str:
        return self._digest

    def verify(self, password: str) -> bool:
        return hmac.compare_digest(self._digest, self._hash(password))

    def replace(self, new_password: str) -> None:
        self._validate(new_password)
        self._digest = self._hash(new_password)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CredentialVault):
            return NotImplemented
        return self._digest == other._digest

    def __repr__(self) -> str:
        return "CredentialVault(digest=<hidden>)"


@dataclass
class BankAccount:
    """A linked bank account. The balance never goes below zero."""

    account_number: str
    balance: Decimal

    def __post_init__(self) -> None:
        self.balance = to_money(self.balance)
        if self.balance < 0:
            raise ValueError("Bank account balance cannot be negative.")


class Ledger:
    """
    Wallet balance, linked bank accounts and the history of a user.

    All state changes go through the methods below; each successful
    balance-changing call appends exactly one entry to the transaction log.
    Business-rule failures are reported as `Outcome` tags and leave the
    ledger untouched.
    """

    def __init__(
        self,
        wallet_balance: Decimal = Decimal("0"),
        bank_accounts: Optional[List[BankAccount]] = None,
        reserved_sessions: Optional[List[str]] = None,
        transaction_log: Optional[List[str]] = None,
    ) -> None:
        self._wallet_balance = to_money(wallet_balance)
        if self._wallet_balance < 0:
            raise ValueError("Wallet balance cannot be negative.")
        self._bank_accounts: List[BankAccount] = list(bank_accounts or [])
        self._reserved_sessions: List[str] = list(reserved_sessions or [])
        self._transaction_log: List[str] = list(transaction_log or [])

    @property
    def wallet_balance(self) -> Decimal:
        return self._wallet_balance

    @property
    def bank_accounts(self) -> Tuple[BankAccount, ...]:
        return tuple(self._bank_accounts)

    @property
    def reserved_sessions(self) -> Tuple[str, ...]:
        return tuple(self._reserved_sessions)

    @property
    def transaction_log(self) -> Tuple[str, ...]:
        return tuple(self._transaction_log)

    def find_account(self, account_number: str) -> Optional[BankAccount]:
        for account in self._bank_accounts:
            if account.account_number == account_number:
                return account
        return None

    def link_account(self, account_number: str, opening_balance) -> Outcome:
        balance = _operation_amount(opening_balance)
        if balance is None or balance < 0:
            return Outcome.INVALID_AMOUNT
        if self.find_account(account_number) is not None:
            return Outcome.DUPLICATE_ACCOUNT

        self._bank_accounts.append(BankAccount(account_number, balance))
        return Outcome.LINKED

    def deposit_to_wallet(self, account_number: str, amount) -> Outcome:
        """Move `amount` from a linked bank account into the wallet."""

        account = self.find_account(account_number)
        if account is None:
            return Outcome.INVALID_ACCOUNT

        amount = _operation_amount(amount)
        if amount is None or amount <= 0:
            return Outcome.INVALID_AMOUNT
        if account.balance < amount:
            return Outcome.INSUFFICIENT_BALANCE

        account.balance -= amount
        self._wallet_balance += amount
        self._transaction_log.append(
            f"Deposited {amount} from account {account_number}"
        )
        return Outcome.DEPOSITED

    def reserve_session(
        self,
        session_id: str,
        price,
        age_limit: int,
        user_age: int,
    ) -> Outcome:
        """
        Pay for a session out of the wallet.

        The age requirement is checked before anything else, so an
        underage user is refused whatever the wallet holds. A session id
        can only be reserved once.
        """

        if user_age < age_limit:
            return Outcome.AGE_INELIGIBLE
        price = _operation_amount(price)
        if price is None or price < 0:
            return Outcome.INVALID_AMOUNT
        if session_id in self._reserved_sessions:
            return Outcome.ALREADY_RESERVED
        if self._wallet_balance < price:
            return Outcome.INSUFFICIENT_BALANCE

        self._wallet_balance -= price
        self._reserved_sessions.append(session_id)
        self._transaction_log.append(f"Reserved session {session_id} for {price}")
        return Outcome.RESERVED

    def total_funds(self) -> Decimal:
        return self._wallet_balance + sum(
            (a.balance for a in self._bank_accounts), Decimal("0")
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return (
            self._wallet_balance == other._wallet_balance
            and self._bank_accounts == other._bank_accounts
            and self._reserved_sessions == other._reserved_sessions
            and self._transaction_log == other._transaction_log
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UserRecord:
    """
    A registered user: identity, credentials and ledger.

    This is the unit of persistence. The vault and ledger are owned by
    the record and never shared with another one.
    """

    id: str
    username: str
    vault: CredentialVault
    ledger: Ledger = field(default_factory=Ledger)
    phone_number: Optional[str] = None
    birth_date: Optional[date] = None
    registration_date: datetime = field(default_factory=_utcnow)
    subscription_level: str = DEFAULT_SUBSCRIPTION_LEVEL

    @classmethod
    def register(
        cls,
        username: str,
        password: str,
        phone_number: Optional[str] = None,
        birth_date: Optional[date] = None,
    ) -> "UserRecord":
        username = username.strip()
        if not username:
            raise InvalidUsernameError("Username cannot be empty.")

        return cls(
            id=str(uuid.uuid4()),
            username=username,
            vault=CredentialVault.create(password),
            phone_number=phone_number or None,
            birth_date=birth_date,
        )

    def login(self, password: str) -> bool:
        return self.vault.verify(password)

    def change_password(self, old_password: str, new_password: str) -> None:
        if not self.vault.verify(old_password):
            raise AuthenticationFailedError("Invalid username or password!")
        self.vault.replace(new_password)

    def age_on(self, day: date) -> Optional[int]:
        if self.birth_date is None:
            return None
        had_birthday = (day.month, day.day) >= (
            self.birth_date.month,
            self.birth_date.day,
        )
        return day.year - self.birth_date.year - (0 if had_birthday else 1)

    def link_bank_account(self, account_number: str, opening_balance) -> Outcome:
        return self.ledger.link_account(account_number, opening_balance)

    def deposit_to_wallet(self, account_number: str, amount) -> Outcome:
        return self.ledger.deposit_to_wallet(account_number, amount)

    def reserve_session(
        self,
        session_id: str,
        price,
        age_limit: int,
        user_age: int,
    ) -> Outcome:
        return self.ledger.reserve_session(session_id, price, age_limit, user_age)
