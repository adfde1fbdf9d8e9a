"""Tests for the monitor check cycle."""

import logging
from unittest.mock import patch

import pytest

from validator_watch.core.monitor import Monitor, evaluate_balance, parse_balance
from validator_watch.db import WatchListDB
from validator_watch.exceptions import FetchError, StorageError
from validator_watch.models import Account, Alert, NotRewarded, Slashed

GWEI_32 = 32_000_000_000


class FakeClient:
    """Balance fetcher returning a fixed mapping (or raising)."""

    def __init__(self, balances=None, error=None):
        self.balances = balances or {}
        self.error = error
        self.calls = []

    async def get_balances(self, indices):
        self.calls.append(list(indices))
        if self.error is not None:
            raise self.error
        return dict(self.balances)

    async def close(self):
        pass


@pytest.fixture
def db(tmp_path):
    return WatchListDB(tmp_path / "state.db")


def _watch_with_balance(db, account, balance):
    db.watch(account)
    db.update_balance(account, balance)


class TestParseBalance:
    def test_decimal(self):
        assert parse_balance("32000000000") == GWEI_32

    def test_leading_plus(self):
        assert parse_balance("+5") == 5

    def test_leading_zeros_do_not_count_toward_width(self):
        assert parse_balance("0" * 30 + "5") == 5
        assert parse_balance("000" + str(2**64 - 1)) == 2**64 - 1

    @pytest.mark.parametrize("raw", ["9" * 5000, "5\n", "1" * 21])
    def test_oversized_or_trailing_input_becomes_zero(self, raw, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_balance(raw, Account(1, 2)) == 0
        assert "unparseable balance" in caplog.text

    @pytest.mark.parametrize("raw", ["", "abc", "-1", "1.5", " 5", str(2**64), None])
    def test_unparseable_becomes_zero(self, raw, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_balance(raw, Account(1, 2)) == 0
        assert "unparseable balance" in caplog.text


class TestEvaluateBalance:
    def test_equal_is_not_rewarded(self):
        account = Account(1, 7)
        assert evaluate_balance(account, 10, 10) == Alert(account, NotRewarded(7))

    def test_lower_is_slashed(self):
        account = Account(1, 7)
        assert evaluate_balance(account, 10, 4) == Alert(account, Slashed(7, 6))

    def test_higher_is_silent(self):
        assert evaluate_balance(Account(1, 7), 10, 11) is None


class TestRun:
    @pytest.mark.asyncio
    async def test_unchanged_balance_alerts_not_rewarded(self, db):
        account = Account(1, 100)
        _watch_with_balance(db, account, GWEI_32)
        monitor = Monitor(db, FakeClient({"100": str(GWEI_32)}))

        alerts = await monitor.run()

        assert alerts == [Alert(account, NotRewarded(100))]
        assert db.get_balance(account) == GWEI_32

    @pytest.mark.asyncio
    async def test_decreased_balance_alerts_slashed(self, db):
        account = Account(1, 100)
        _watch_with_balance(db, account, GWEI_32)
        monitor = Monitor(db, FakeClient({"100": "31999000000"}))

        alerts = await monitor.run()

        assert alerts == [Alert(account, Slashed(100, 1_000_000))]
        assert db.get_balance(account) == 31_999_000_000

    @pytest.mark.asyncio
    async def test_increased_balance_is_silent_and_stored(self, db):
        account = Account(1, 100)
        _watch_with_balance(db, account, GWEI_32)
        monitor = Monitor(db, FakeClient({"100": "32100000000"}))

        assert await monitor.run() == []
        assert db.get_balance(account) == 32_100_000_000

    @pytest.mark.asyncio
    async def test_missing_balance_is_skipped(self, db, caplog):
        account = Account(1, 100)
        _watch_with_balance(db, account, GWEI_32)
        monitor = Monitor(db, FakeClient({}))

        with caplog.at_level(logging.WARNING):
            assert await monitor.run() == []
        assert db.get_balance(account) == GWEI_32
        assert "balance not found for validator 100" in caplog.text

    @pytest.mark.asyncio
    async def test_fetch_failure_leaves_store_untouched(self, db):
        _watch_with_balance(db, Account(1, 100), GWEI_32)
        _watch_with_balance(db, Account(2, 200), 5)
        before = db.list()
        monitor = Monitor(db, FakeClient(error=FetchError("node down")))

        with pytest.raises(FetchError):
            await monitor.run()

        assert db.list() == before

    @pytest.mark.asyncio
    async def test_three_accounts_two_alerts(self, db):
        unchanged, slashed, rewarded = Account(1, 10), Account(2, 20), Account(3, 30)
        for account in (unchanged, slashed, rewarded):
            _watch_with_balance(db, account, GWEI_32)
        monitor = Monitor(db, FakeClient({
            "10": str(GWEI_32),
            "20": "31999000000",
            "30": "32100000000",
        }))

        alerts = await monitor.run()

        assert alerts == [
            Alert(unchanged, NotRewarded(10)),
            Alert(slashed, Slashed(20, 1_000_000)),
        ]

    @pytest.mark.asyncio
    async def test_fetches_every_watched_index_once(self, db):
        db.watch(Account(1, 10))
        db.watch(Account(2, 20))
        client = FakeClient({})
        await Monitor(db, client).run()
        assert len(client.calls) == 1
        assert sorted(client.calls[0]) == [10, 20]

    @pytest.mark.asyncio
    async def test_new_watch_gets_zero_baseline(self, db):
        account = Account(1, 100)
        monitor = Monitor(db, FakeClient({"100": str(GWEI_32)}))
        monitor.watch(account)

        assert await monitor.run() == []
        assert db.get_balance(account) == GWEI_32

    @pytest.mark.asyncio
    async def test_unparseable_balance_treated_as_zero(self, db):
        account = Account(1, 100)
        _watch_with_balance(db, account, GWEI_32)
        monitor = Monitor(db, FakeClient({"100": "garbage"}))

        alerts = await monitor.run()

        assert alerts == [Alert(account, Slashed(100, GWEI_32))]
        assert db.get_balance(account) == 0

    @pytest.mark.asyncio
    async def test_huge_digit_string_does_not_abort_run(self, db):
        steady, huge, grown = Account(1, 10), Account(2, 20), Account(3, 30)
        for account in (steady, huge, grown):
            _watch_with_balance(db, account, GWEI_32)
        monitor = Monitor(db, FakeClient({"10": str(GWEI_32), "20": "9" * 5000, "30": str(GWEI_32 + 1)}))

        alerts = await monitor.run()

        assert alerts == [
            Alert(steady, NotRewarded(10)),
            Alert(huge, Slashed(20, GWEI_32)),
        ]
        assert db.get_balance(huge) == 0
        assert db.get_balance(grown) == GWEI_32 + 1

    @pytest.mark.asyncio
    async def test_storage_failure_aborts_remaining_accounts(self, db):
        first, second = Account(1, 10), Account(2, 20)
        _watch_with_balance(db, first, 5)
        _watch_with_balance(db, second, 5)
        monitor = Monitor(db, FakeClient({"10": "6", "20": "7"}))

        with patch.object(db, "update_balance", side_effect=StorageError("disk full")):
            with pytest.raises(StorageError):
                await monitor.run()

        assert db.get_balance(first) == 5
        assert db.get_balance(second) == 5

    @pytest.mark.asyncio
    async def test_forget_during_run_is_not_undone(self, db):
        account = Account(1, 100)
        _watch_with_balance(db, account, 5)

        class ForgettingClient(FakeClient):
            async def get_balances(self, indices):
                db.forget(account)
                return {"100": "6"}

        assert await Monitor(db, ForgettingClient()).run() == []
        assert db.list() == []


class TestCommands:
    def test_watch_and_forget(self, db):
        monitor = Monitor(db, FakeClient())
        account = Account(1, 100)
        monitor.watch(account)
        assert db.list() == [(account, 0)]
        monitor.forget(account)
        assert db.list() == []

    def test_forget_unknown_is_noop(self, db):
        Monitor(db, FakeClient()).forget(Account(1, 100))
        assert db.list() == []
