from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from domain.exceptions import RecordNotFoundError
from domain.models import BankAccount, CredentialVault, Ledger, UserRecord


def record_to_dict(record: UserRecord) -> Dict[str, Any]:
    """
    Flatten a `UserRecord` into JSON-compatible plain data.

    Money is written as strings so no precision is lost, and the password
    digest is written as-is.
    """

    ledger = record.ledger
    return {
        "id": record.id,
        "username": record.username,
        "hashed_password": record.vault.digest,
        "phone_number": record.phone_number,
        "birth_date": record.birth_date.isoformat() if record.birth_date else None,
        "registration_date": record.registration_date.isoformat(),
        "subscription_level": record.subscription_level,
        "wallet_balance": str(ledger.wallet_balance),
        "bank_accounts": [
            {"account_number": a.account_number, "balance": str(a.balance)}
            for a in ledger.bank_accounts
        ],
        "reserved_sessions": list(ledger.reserved_sessions),
        "transaction_log": list(ledger.transaction_log),
    }


def record_from_dict(
    data: Dict[str, Any],
    expected_username: Optional[str] = None,
) -> UserRecord:
    """
    Rebuild a `UserRecord` from `record_to_dict` output.

    Any structural problem is reported as `RecordNotFoundError`, as is
    data that breaks a ledger invariant (repeated account numbers or
    session ids) or that belongs to a user other than `expected_username`.
    """

    try:
        bank_accounts = [
            BankAccount(str(a["account_number"]), Decimal(a["balance"]))
            for a in data.get("bank_accounts", [])
        ]
        reserved_sessions = [str(s) for s in data.get("reserved_sessions", [])]
        _reject_duplicates("account number", [a.account_number for a in bank_accounts])
        _reject_duplicates("session id", reserved_sessions)

        ledger = Ledger(
            wallet_balance=Decimal(data["wallet_balance"]),
            bank_accounts=bank_accounts,
            reserved_sessions=reserved_sessions,
            transaction_log=[str(e) for e in data.get("transaction_log", [])],
        )
        username = str(data["username"])
        if expected_username is not None and username != expected_username:
            raise ValueError(
                f"stored username {username!r} does not match {expected_username!r}"
            )

        birth_date = data.get("birth_date")
        return UserRecord(
            id=str(data["id"]),
            username=username,
            vault=CredentialVault.from_digest(str(data["hashed_password"])),
            ledger=ledger,
            phone_number=data.get("phone_number"),
            birth_date=date.fromisoformat(birth_date) if birth_date else None,
            registration_date=datetime.fromisoformat(data["registration_date"]),
            subscription_level=str(data["subscription_level"]),
        )
    except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise RecordNotFoundError(f"Malformed user record: {exc}") from exc


def _reject_duplicates(kind: str, values: List[str]) -> None:
    seen = set()
    for value in values:
        if value in seen:
            raise ValueError(f"duplicate {kind} {value!r}")
        seen.add(value)
