import hashlib
import unittest
from datetime import date
from decimal import Decimal

from domain.directory import UserDirectory
from domain.exceptions import (
    AuthenticationFailedError,
    DuplicateUsernameError,
    InvalidCredentialError,
    InvalidUsernameError,
)
from domain.models import MAX_AMOUNT, CredentialVault, Ledger, Outcome, UserRecord, to_money


class CredentialVaultTests(unittest.TestCase):
    def test_create_stores_only_digest(self):
        vault = CredentialVault.create("secret1")
        self.assertEqual(vault.digest, hashlib.sha256(b"secret1").hexdigest())
        self.assertNotIn("secret1", repr(vault))

    def test_verify_accepts_only_the_same_password(self):
        vault = CredentialVault.create("secret1")
        self.assertTrue(vault.verify("secret1"))
        self.assertFalse(vault.verify("secret2"))
        self.assertFalse(vault.verify(""))

    def test_short_password_is_rejected(self):
        for password in ("", "a", "abc"):
            with self.assertRaises(InvalidCredentialError):
                CredentialVault.create(password)

    def test_four_characters_is_enough(self):
        self.assertTrue(CredentialVault.create("abcd").verify("abcd"))

    def test_replace_switches_password(self):
        vault = CredentialVault.create("secret1")
        vault.replace("better-one")
        self.assertTrue(vault.verify("better-one"))
        self.assertFalse(vault.verify("secret1"))

    def test_failed_replace_keeps_old_digest(self):
        vault = CredentialVault.create("secret1")
        before = vault.digest
        with self.assertRaises(InvalidCredentialError):
            vault.replace("abc")
        self.assertEqual(vault.digest, before)
        self.assertTrue(vault.verify("secret1"))

    def test_from_digest_does_not_rehash(self):
        digest = CredentialVault.create("secret1").digest
        restored = CredentialVault.from_digest(digest)
        self.assertEqual(restored.digest, digest)
        self.assertTrue(restored.verify("secret1"))


class LedgerDepositTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ledger = Ledger()
        self.ledger.link_account("ACC1", Decimal("50"))

    def test_new_ledger_is_empty(self):
        ledger = Ledger()
        self.assertEqual(ledger.wallet_balance, Decimal("0"))
        self.assertEqual(ledger.bank_accounts, ())
        self.assertEqual(ledger.reserved_sessions, ())
        self.assertEqual(ledger.transaction_log, ())

    def test_deposit_moves_money_and_conserves_total(self):
        total_before = self.ledger.total_funds()

        outcome = self.ledger.deposit_to_wallet("ACC1", Decimal("20"))

        self.assertEqual(outcome, Outcome.DEPOSITED)
        self.assertEqual(self.ledger.wallet_balance, Decimal("20"))
        self.assertEqual(self.ledger.find_account("ACC1").balance, Decimal("30"))
        self.assertEqual(self.ledger.total_funds(), total_before)
        self.assertEqual(
            self.ledger.transaction_log, ("Deposited 20.00 from account ACC1",)
        )

    def test_deposit_whole_balance(self):
        self.assertEqual(self.ledger.deposit_to_wallet("ACC1", 50), Outcome.DEPOSITED)
        self.assertEqual(self.ledger.find_account("ACC1").balance, Decimal("0"))

    def test_deposit_more_than_balance_is_rejected(self):
        outcome = self.ledger.deposit_to_wallet("ACC1", Decimal("50.01"))

        self.assertEqual(outcome, Outcome.INSUFFICIENT_BALANCE)
        self.assertEqual(self.ledger.wallet_balance, Decimal("0"))
        self.assertEqual(self.ledger.find_account("ACC1").balance, Decimal("50"))
        self.assertEqual(self.ledger.transaction_log, ())

    def test_deposit_from_unknown_account_is_rejected(self):
        outcome = self.ledger.deposit_to_wallet("NOPE", Decimal("1"))

        self.assertEqual(outcome, Outcome.INVALID_ACCOUNT)
        self.assertEqual(self.ledger.transaction_log, ())

    def test_non_positive_deposit_is_rejected(self):
        for amount in (Decimal("0"), Decimal("-5")):
            self.assertEqual(
                self.ledger.deposit_to_wallet("ACC1", amount), Outcome.INVALID_AMOUNT
            )
        self.assertEqual(self.ledger.wallet_balance, Decimal("0"))
        self.assertEqual(self.ledger.transaction_log, ())

    def test_link_rejects_duplicates_and_negative_balance(self):
        self.assertEqual(self.ledger.link_account("ACC1", 10), Outcome.DUPLICATE_ACCOUNT)
        self.assertEqual(self.ledger.link_account("ACC2", -1), Outcome.INVALID_AMOUNT)
        self.assertEqual(len(self.ledger.bank_accounts), 1)

    def test_unusable_amounts_are_rejected_without_raising(self):
        for amount in ("1e30", "1e27", MAX_AMOUNT + 1, "NaN", "Infinity", "abc"):
            self.assertEqual(
                self.ledger.deposit_to_wallet("ACC1", amount), Outcome.INVALID_AMOUNT
            )
            self.assertEqual(
                self.ledger.link_account("BIG", amount), Outcome.INVALID_AMOUNT
            )
        self.assertEqual(self.ledger.wallet_balance, Decimal("0"))
        self.assertEqual(self.ledger.find_account("ACC1").balance, Decimal("50"))
        self.assertIsNone(self.ledger.find_account("BIG"))
        self.assertEqual(self.ledger.transaction_log, ())

    def test_to_money_reports_bad_values_as_value_error(self):
        self.assertEqual(to_money("12.345"), Decimal("12.34"))
        for value in ("1e30", "NaN", "-Infinity", "abc"):
            with self.assertRaises(ValueError):
                to_money(value)


class LedgerReservationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ledger = Ledger()
        self.ledger.link_account("ACC1", Decimal("100"))
        self.ledger.deposit_to_wallet("ACC1", Decimal("20"))

    def test_reservation_charges_wallet(self):
        outcome = self.ledger.reserve_session("S1", Decimal("15"), 18, 20)

        self.assertEqual(outcome, Outcome.RESERVED)
        self.assertEqual(self.ledger.wallet_balance, Decimal("5"))
        self.assertEqual(self.ledger.reserved_sessions, ("S1",))
        self.assertEqual(self.ledger.transaction_log[-1], "Reserved session S1 for 15.00")

    def test_underage_is_rejected_even_with_money(self):
        outcome = self.ledger.reserve_session("S1", Decimal("1"), 18, 17)

        self.assertEqual(outcome, Outcome.AGE_INELIGIBLE)
        self.assertEqual(self.ledger.wallet_balance, Decimal("20"))
        self.assertEqual(self.ledger.reserved_sessions, ())

    def test_underage_wins_over_insufficient_balance(self):
        outcome = self.ledger.reserve_session("S1", Decimal("500"), 18, 10)
        self.assertEqual(outcome, Outcome.AGE_INELIGIBLE)

    def test_underage_wins_over_invalid_price(self):
        self.assertEqual(
            self.ledger.reserve_session("S1", Decimal("-1"), 18, 16),
            Outcome.AGE_INELIGIBLE,
        )
        self.assertEqual(
            self.ledger.reserve_session("S1", "1e30", 18, 16), Outcome.AGE_INELIGIBLE
        )

    def test_oversized_price_is_rejected(self):
        for price in ("1e30", MAX_AMOUNT + 1, "NaN"):
            self.assertEqual(
                self.ledger.reserve_session("S1", price, 0, 30), Outcome.INVALID_AMOUNT
            )
        self.assertEqual(self.ledger.wallet_balance, Decimal("20"))
        self.assertEqual(self.ledger.reserved_sessions, ())

    def test_insufficient_wallet_is_rejected(self):
        log_before = self.ledger.transaction_log

        outcome = self.ledger.reserve_session("S1", Decimal("20.01"), 0, 30)

        self.assertEqual(outcome, Outcome.INSUFFICIENT_BALANCE)
        self.assertEqual(self.ledger.wallet_balance, Decimal("20"))
        self.assertEqual(self.ledger.reserved_sessions, ())
        self.assertEqual(self.ledger.transaction_log, log_before)

    def test_same_session_cannot_be_reserved_twice(self):
        self.ledger.reserve_session("S1", Decimal("5"), 0, 30)

        outcome = self.ledger.reserve_session("S1", Decimal("5"), 0, 30)

        self.assertEqual(outcome, Outcome.ALREADY_RESERVED)
        self.assertEqual(self.ledger.wallet_balance, Decimal("15"))
        self.assertEqual(self.ledger.reserved_sessions, ("S1",))

    def test_negative_price_is_rejected(self):
        outcome = self.ledger.reserve_session("S1", Decimal("-1"), 0, 30)
        self.assertEqual(outcome, Outcome.INVALID_AMOUNT)
        self.assertEqual(self.ledger.wallet_balance, Decimal("20"))

    def test_exposed_collections_are_read_only(self):
        self.assertIsInstance(self.ledger.transaction_log, tuple)
        self.assertIsInstance(self.ledger.reserved_sessions, tuple)


class UserRecordTests(unittest.TestCase):
    def test_register_sets_defaults(self):
        record = UserRecord.register("alice", "secret1", "555-0100", date(2000, 5, 1))

        self.assertTrue(record.id)
        self.assertEqual(record.username, "alice")
        self.assertEqual(record.subscription_level, "Bronze")
        self.assertEqual(record.ledger.wallet_balance, Decimal("0"))
        self.assertIsNotNone(record.registration_date.tzinfo)
        self.assertTrue(record.login("secret1"))

    def test_register_generates_unique_ids(self):
        first = UserRecord.register("alice", "secret1")
        second = UserRecord.register("bob", "secret1")
        self.assertNotEqual(first.id, second.id)

    def test_register_rejects_short_password_and_blank_username(self):
        with self.assertRaises(InvalidCredentialError):
            UserRecord.register("alice", "abc")
        with self.assertRaises(InvalidUsernameError):
            UserRecord.register("   ", "secret1")

    def test_change_password_requires_old_password(self):
        record = UserRecord.register("alice", "secret1")

        with self.assertRaises(AuthenticationFailedError):
            record.change_password("wrong", "newpass")
        with self.assertRaises(InvalidCredentialError):
            record.change_password("secret1", "no")
        self.assertTrue(record.login("secret1"))

        record.change_password("secret1", "newpass")
        self.assertTrue(record.login("newpass"))
        self.assertFalse(record.login("secret1"))

    def test_age_on(self):
        record = UserRecord.register("alice", "secret1", birth_date=date(2000, 5, 1))
        self.assertEqual(record.age_on(date(2020, 4, 30)), 19)
        self.assertEqual(record.age_on(date(2020, 5, 1)), 20)
        self.assertIsNone(UserRecord.register("bob", "secret1").age_on(date(2020, 1, 1)))

    def test_alice_scenario(self):
        record = UserRecord.register("alice", "secret1")
        record.link_bank_account("ACC1", Decimal("50"))

        self.assertEqual(record.deposit_to_wallet("ACC1", Decimal("20")), Outcome.DEPOSITED)
        self.assertEqual(record.ledger.wallet_balance, Decimal("20"))
        self.assertEqual(record.ledger.find_account("ACC1").balance, Decimal("30"))
        self.assertEqual(len(record.ledger.transaction_log), 1)

        self.assertEqual(
            record.reserve_session("S1", Decimal("15"), 18, 20), Outcome.RESERVED
        )
        self.assertEqual(record.ledger.wallet_balance, Decimal("5"))
        self.assertEqual(record.ledger.reserved_sessions, ("S1",))
        self.assertEqual(len(record.ledger.transaction_log), 2)

        self.assertEqual(
            record.reserve_session("S2", Decimal("10"), 18, 16), Outcome.AGE_INELIGIBLE
        )
        self.assertEqual(record.ledger.wallet_balance, Decimal("5"))


class UserDirectoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.directory = UserDirectory()
        self.directory.add(UserRecord.register("alice", "secret1"))

    def test_duplicate_username_is_rejected(self):
        with self.assertRaises(DuplicateUsernameError):
            self.directory.add(UserRecord.register("alice", "other-pass"))
        self.assertEqual(len(self.directory), 1)

    def test_find_by_credentials(self):
        self.assertIsNotNone(self.directory.find_by_credentials("alice", "secret1"))
        self.assertIsNone(self.directory.find_by_credentials("alice", "wrong"))
        self.assertIsNone(self.directory.find_by_credentials("nobody", "secret1"))

    def test_remove_requires_credentials(self):
        with self.assertRaises(AuthenticationFailedError):
            self.directory.remove("alice", "wrong")
        self.assertIn("alice", self.directory)

        self.directory.remove("alice", "secret1")
        self.assertEqual(len(self.directory), 0)

        self.directory.add(UserRecord.register("alice", "fresh-pass"))
        self.assertEqual(len(self.directory), 1)
        self.assertIsNotNone(self.directory.find_by_credentials("alice", "fresh-pass"))


if __name__ == "__main__":
    unittest.main()
