import asyncio
from types import SimpleNamespace

import pytest
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted

from fanclub_market.errors import LedgerReadError, LedgerWriteError
from fanclub_market.ledger.abi import FAN_CLUB_FACTORY_ABI, load_abi
from fanclub_market.ledger.gateway import Web3LedgerGateway, decode_fan_club
from fanclub_market.ledger.model import FanType

CONTRACT = "0xac81B46fbc0d50C84982AbBfFc0a3e97e8409a70"
SENDER = "0x00000000000000000000000000000000000A11CE"
RAW = ("Cityzens", "Blue moon", 0, "0x000000000000000000000000000000000000700C", "QmHash", 12, 100, SENDER)


class _Call:
    def __init__(self, fn_name, args, contract):
        self.fn_name = fn_name
        self.args = args
        self.contract = contract

    async def call(self):
        result = self.contract.results[self.fn_name]
        if isinstance(result, Exception):
            raise result
        return result(*self.args) if callable(result) else result

    async def transact(self, params):
        self.contract.transactions.append((self.fn_name, self.args, params))
        if self.contract.transact_error is not None:
            raise self.contract.transact_error
        return b"\x12" * 32


class _Functions:
    def __init__(self, contract):
        self._contract = contract

    def __getattr__(self, name):
        return lambda *args: _Call(name, args, self._contract)


class FakeContract:
    def __init__(self):
        self.results = {}
        self.transactions = []
        self.transact_error = None
        self.functions = _Functions(self)


def make_gateway(receipt=None, receipt_error=None):
    contract = FakeContract()
    created = {}

    def contract_factory(address, abi):
        created["address"] = address
        created["abi"] = abi
        return contract

    async def wait_for_receipt(tx_hash, timeout, poll_latency):
        if receipt_error is not None:
            raise receipt_error
        return receipt if receipt is not None else {"status": 1, "blockNumber": 42}

    w3 = SimpleNamespace(eth=SimpleNamespace(contract=contract_factory, wait_for_transaction_receipt=wait_for_receipt))
    gw = Web3LedgerGateway(w3, CONTRACT.lower(), receipt_timeout_s=5, poll_latency_s=0.1)
    return gw, contract, created


def test_decode_fan_club_maps_fields():
    club = decode_fan_club(4, RAW)
    assert club.index == 4
    assert club.name == "Cityzens"
    assert club.fan_type is FanType.CITY
    assert club.total_shares == 12
    assert club.share_price == 100
    assert club.creator == SENDER


def test_decode_fan_club_rejects_bad_shapes():
    with pytest.raises(LedgerReadError):
        decode_fan_club(0, RAW[:5])
    with pytest.raises(LedgerReadError):
        decode_fan_club(0, RAW[:2] + (9,) + RAW[3:])


def test_gateway_checksums_address_and_uses_bundled_abi():
    _, _, created = make_gateway()
    assert created["address"].lower() == CONTRACT.lower()
    assert AsyncWeb3.is_checksum_address(created["address"])
    assert created["abi"] is FAN_CLUB_FACTORY_ABI


def test_reads_go_through_contract_calls():
    gw, contract, _ = make_gateway()
    contract.results["getFanClubCount"] = 1
    contract.results["getFanClub"] = lambda index: RAW
    assert asyncio.run(gw.read_fan_club_count()) == 1
    assert asyncio.run(gw.read_fan_club(0)).image == "QmHash"


def test_reverting_read_becomes_ledger_read_error():
    gw, contract, _ = make_gateway()
    contract.results["getFanClub"] = ContractLogicError("execution reverted: index out of range")
    with pytest.raises(LedgerReadError) as exc:
        asyncio.run(gw.read_fan_club(9))
    assert isinstance(exc.value.__cause__, ContractLogicError)


def test_buy_sends_value_and_returns_confirmed_result():
    gw, contract, _ = make_gateway()
    result = asyncio.run(gw.write_buy_shares(1, 3, SENDER, 750))
    assert contract.transactions == [("buyShares", (1, 3), {"from": SENDER, "value": 750})]
    assert result.accepted
    assert result.block_number == 42
    assert result.tx_hash == "0x" + "12" * 32


def test_sell_and_create_send_no_value():
    gw, contract, _ = make_gateway()
    asyncio.run(gw.write_sell_shares(0, 2, SENDER))
    asyncio.run(gw.write_create_fan_club("X", "d", 1, "img", SENDER))
    assert contract.transactions == [
        ("sellShares", (0, 2), {"from": SENDER}),
        ("createFanClub", ("X", "d", 1, "img"), {"from": SENDER}),
    ]


def test_rejected_transaction_becomes_write_error():
    gw, contract, _ = make_gateway()
    contract.transact_error = ValueError({"code": 4001, "message": "User denied transaction signature"})
    with pytest.raises(LedgerWriteError) as exc:
        asyncio.run(gw.write_sell_shares(0, 1, SENDER))
    assert exc.value.tx_hash is None


def test_unconfirmed_transaction_keeps_hash():
    gw, _, _ = make_gateway(receipt_error=TimeExhausted("not in chain after 5 seconds"))
    with pytest.raises(LedgerWriteError) as exc:
        asyncio.run(gw.write_buy_shares(0, 1, SENDER, 100))
    assert exc.value.tx_hash == "0x" + "12" * 32


def test_reverted_receipt_reported_as_not_accepted():
    gw, _, _ = make_gateway(receipt={"status": 0, "blockNumber": 7})
    result = asyncio.run(gw.write_buy_shares(0, 1, SENDER, 100))
    assert result.status == "reverted"
    assert not result.accepted


def test_load_abi_from_build_artifact(tmp_path):
    path = tmp_path / "FanClubFactory.json"
    path.write_text('{"contractName": "FanClubFactory", "abi": [{"type": "function", "name": "getFanClubCount"}]}')
    abi = load_abi(str(path))
    assert abi == [{"type": "function", "name": "getFanClubCount"}]
    assert load_abi(None) is FAN_CLUB_FACTORY_ABI


def _real_gateway():
    # Nothing is sent: argument encoding fails before any request
    w3 = AsyncWeb3(AsyncHTTPProvider("http://127.0.0.1:1"))
    return Web3LedgerGateway(w3, CONTRACT)


@pytest.mark.parametrize(
    "write",
    [
        lambda gw: gw.write_sell_shares(-1, 1, SENDER),
        lambda gw: gw.write_buy_shares(0, 2 ** 256, SENDER, 0),
        lambda gw: gw.write_create_fan_club("X", "d", 300, "img", SENDER),
    ],
)
def test_arguments_outside_abi_become_write_error(write):
    with pytest.raises(LedgerWriteError) as exc:
        asyncio.run(write(_real_gateway()))
    assert exc.value.tx_hash is None


def test_read_with_index_outside_abi_becomes_read_error():
    with pytest.raises(LedgerReadError):
        asyncio.run(_real_gateway().read_fan_club(-1))
