import json
import logging
from typing import Any, Dict, List, Sequence, Tuple

import pytest

COUNTER_HR = "function getValue() view returns (uint256)"

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [{"name": "supply", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint"}],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "transferFrom",
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "event",
        "name": "Transfer",
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
        "anonymous": False,
    },
]

OVERLOADED_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "setValue",
        "inputs": [{"name": "value", "type": "uint256"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "setValue",
        "inputs": [{"name": "value", "type": "string"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]


@pytest.fixture(autouse=True)
def _abigen_env(monkeypatch):
    """Deterministic environment: no external formatter, default registries and logging."""
    monkeypatch.setenv("ABIGEN_FORMATTER", "abigen-test-no-such-formatter")
    for key in (
        "ABIGEN_FORMAT_TIMEOUT",
        "ABIGEN_FETCH_TIMEOUT",
        "ABIGEN_ETHERSCAN_URL",
        "ABIGEN_ETHERSCAN_API_KEY",
        "ABIGEN_NPM_URL",
        "ABIGEN_LOG_LEVEL",
        "ABIGEN_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_abigen_logger():
    yield
    logger = logging.getLogger("abigen")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def counter_hr() -> str:
    return COUNTER_HR


@pytest.fixture
def erc20_json() -> str:
    return json.dumps(ERC20_ABI)


@pytest.fixture
def overloaded_json() -> str:
    return json.dumps(OVERLOADED_ABI)


@pytest.fixture
def abi_dir(tmp_path, erc20_json, counter_hr):
    """A directory with two ABI files and one file that is not an ABI."""
    d = tmp_path / "abi"
    d.mkdir()
    (d / "ERC20.json").write_text(erc20_json, encoding="utf-8")
    (d / "Counter.abi").write_text(counter_hr + "\n", encoding="utf-8")
    (d / "README.md").write_text("not an abi\n", encoding="utf-8")
    return d


class FakeTransport:
    """Records every request; `call` returns canned bytes, `send_transaction` a fixed hash."""

    def __init__(self, result: bytes = b"\x00", fail: bool = False):
        self.result = result
        self.fail = fail
        self.calls: List[Tuple[str, Dict[str, Any], Any]] = []

    def call(self, tx, block):
        self.calls.append(("call", dict(tx), block))
        if self.fail:
            raise ConnectionError("node unreachable")
        return self.result

    def send_transaction(self, tx, block):
        self.calls.append(("send", dict(tx), block))
        return "0x" + "ab" * 32


class FakeCodec:
    """Encodes calls as readable bytes and returns preset decoded values."""

    def __init__(self, outputs: Sequence[Any] = (), log_values: Sequence[Any] = ()):
        self.outputs = list(outputs)
        self.log_values = list(log_values)
        self.log_requests: List[Tuple[str, Any, List[Any], Any]] = []

    def encode_call(self, signature, args):
        return f"{signature}:{list(args)!r}".encode()

    def decode_output(self, types, data):
        return list(self.outputs)

    def decode_log(self, signature, inputs, topics, data):
        self.log_requests.append((signature, inputs, list(topics), data))
        return list(self.log_values)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def make_codec():
    return FakeCodec
