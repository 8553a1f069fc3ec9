import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from csv_io import read_transactions_from_file
from engine import TransactionEngine
from errors import ErrorKind


def run_file(tmp_path, rows):
    csv_file = tmp_path / "large_test.csv"
    csv_file.write_text('\n'.join(rows))

    diagnostics = []
    engine = TransactionEngine(sink=diagnostics.append)
    ledger = engine.process(read_transactions_from_file(str(csv_file)))
    accounts = {account.client_id: account for account in ledger.snapshot()}
    return accounts, diagnostics


class TestTransactionEngineLargeScale:
    def test_1000_accounts_6000_transactions(self, tmp_path):
        """Test with 1000 accounts and 6000 transactions."""
        num_clients = 1000
        rows = ["type, client, tx, amount"]
        tx_id = 1

        # Each client gets: 3 deposits (100, 200, 300) and 2 withdrawals (50, 100)
        # Expected per client: 100 + 200 + 300 - 50 - 100 = 450, plus 50 more below = 500

        for client_id in range(1, num_clients + 1):
            rows.append(f"deposit, {client_id}, {tx_id}, 100")
            tx_id += 1
            rows.append(f"deposit, {client_id}, {tx_id}, 200")
            tx_id += 1
            rows.append(f"deposit, {client_id}, {tx_id}, 300")
            tx_id += 1
            rows.append(f"withdrawal, {client_id}, {tx_id}, 50")
            tx_id += 1
            rows.append(f"withdrawal, {client_id}, {tx_id}, 100")
            tx_id += 1

        for client_id in range(1, num_clients + 1):
            rows.append(f"deposit, {client_id}, {tx_id}, 50")
            tx_id += 1

        expected_balance = Decimal("500")

        accounts, diagnostics = run_file(tmp_path, rows)

        assert len(accounts) == num_clients
        assert diagnostics == []

        for client_id in range(1, num_clients + 1):
            assert accounts[client_id].available == expected_balance, \
                f"Client {client_id}: expected {expected_balance}, got {accounts[client_id].available}"
            assert accounts[client_id].held == Decimal("0")
            assert accounts[client_id].locked is False

    def test_with_disputes_resolves_chargebacks(self, tmp_path):
        """Test with disputes, resolves, and chargebacks across 50 accounts."""
        rows = ["type, client, tx, amount"]
        tx_id = 1
        deposit_ids = {}

        for client_id in range(1, 51):
            deposit_ids[client_id] = []
            for amount in (100, 150, 250):
                rows.append(f"deposit, {client_id}, {tx_id}, {amount}")
                deposit_ids[client_id].append(tx_id)
                tx_id += 1

        # Clients 11-20: first deposit disputed and resolved -> 500, unlocked
        for client_id in range(11, 21):
            first = deposit_ids[client_id][0]
            rows.append(f"dispute, {client_id}, {first},")
            rows.append(f"resolve, {client_id}, {first},")

        # Clients 21-30: first deposit still disputed -> 400 available, 100 held
        for client_id in range(21, 31):
            rows.append(f"dispute, {client_id}, {deposit_ids[client_id][0]},")

        # Clients 31-40: second deposit charged back -> 350, locked; later deposit rejected
        for client_id in range(31, 41):
            second = deposit_ids[client_id][1]
            rows.append(f"dispute, {client_id}, {second},")
            rows.append(f"chargeback, {client_id}, {second},")
            rows.append(f"deposit, {client_id}, {tx_id}, 1000")
            tx_id += 1

        # Clients 41-50: try to dispute another client's deposit
        for client_id in range(41, 51):
            rows.append(f"dispute, {client_id}, {deposit_ids[client_id - 40][0]},")

        accounts, diagnostics = run_file(tmp_path, rows)

        assert len(accounts) == 50

        for client_id in range(1, 21):
            assert accounts[client_id].available == Decimal("500")
            assert accounts[client_id].held == Decimal("0")
            assert accounts[client_id].locked is False

        for client_id in range(21, 31):
            assert accounts[client_id].available == Decimal("400")
            assert accounts[client_id].held == Decimal("100")
            assert accounts[client_id].total == Decimal("500")

        for client_id in range(31, 41):
            assert accounts[client_id].available == Decimal("350")
            assert accounts[client_id].held == Decimal("0")
            assert accounts[client_id].total == Decimal("350")
            assert accounts[client_id].locked is True

        for client_id in range(41, 51):
            assert accounts[client_id].available == Decimal("500")
            assert accounts[client_id].held == Decimal("0")

        kinds = [diagnostic.error_kind for diagnostic in diagnostics]
        assert kinds.count(ErrorKind.ACCOUNT_LOCKED) == 10
        assert kinds.count(ErrorKind.CLIENT_MISMATCH) == 10
        assert len(kinds) == 20
