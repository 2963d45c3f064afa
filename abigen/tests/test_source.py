import json
from pathlib import Path

import pytest
import requests

from abigen.config import AbigenConfig
from abigen.errors import AbiParseError, SourceError, SourceErrorKind
from abigen.source import (FilePath, InlineJson, InlineSchema, RemoteRef,
                           parse_document, parse_source)


class _Resp:
    def __init__(self, text: str, status: int = 200):
        self.text = text
        self.status_code = status
        self.ok = 200 <= status < 300


@pytest.mark.parametrize(
    "raw",
    [
        "function getValue() view returns (uint256)",
        "event Transfer(address indexed from, address to, uint256 value)",
        "constructor(address owner)",
        "[ function foo() ]",
        "[\n  getValue() (uint256)\n]",
        "   function padded() view returns (bool)  ",
    ],
)
def test_human_readable_sources(raw):
    src = parse_source(raw)
    assert isinstance(src, InlineSchema)
    assert src.text == raw.strip()


@pytest.mark.parametrize("raw", ["[]", '[{"type": "function"}]', '{"abi": []}', '[ {"name": "x"} ]'])
def test_inline_json_sources(raw):
    assert isinstance(parse_source(raw), InlineJson)


@pytest.mark.parametrize(
    "raw",
    ["./abi/ERC20.json", "/abs/path/Token.abi", "../up/x", "~/abi.json", "contracts/Counter", "Token.abi", "ERC20.JSON"],
)
def test_file_path_sources(raw):
    src = parse_source(raw)
    assert isinstance(src, FilePath)
    assert src.path == Path(raw)


def test_windows_drive_path_is_a_file():
    assert isinstance(parse_source("C:\\abi\\Token.json"), FilePath)


@pytest.mark.parametrize(
    "raw",
    [
        "https://example.com/abi/Token.json",
        "http://localhost:8080/abi",
        "etherscan:0xdAC17F958D2ee523a2206206994597C13D831ec7",
        "npm:@openzeppelin/contracts/build/contracts/ERC20.json",
    ],
)
def test_remote_sources(raw):
    src = parse_source(raw)
    assert isinstance(src, RemoteRef)
    assert src.identifier == raw


@pytest.mark.parametrize("raw", ["", "not an abi", "ipfs:QmHash", "Counter"])
def test_unrecognized_sources(raw):
    with pytest.raises(SourceError) as ei:
        parse_source(raw)
    assert ei.value.kind is SourceErrorKind.UNRECOGNIZED


def test_classification_does_not_touch_the_filesystem(tmp_path):
    src = parse_source(str(tmp_path / "missing.json"))
    assert isinstance(src, FilePath)
    with pytest.raises(SourceError) as ei:
        src.load()
    assert ei.value.kind is SourceErrorKind.IO
    assert ei.value.source.endswith("missing.json")


def test_file_source_loads_json_and_human_readable(tmp_path, erc20_json, counter_hr):
    j = tmp_path / "ERC20.json"
    j.write_text(erc20_json, encoding="utf-8")
    h = tmp_path / "Counter.abi"
    h.write_text(counter_hr, encoding="utf-8")

    erc20 = FilePath(j).load()
    assert erc20.function_signatures() == [
        "balanceOf(address)",
        "transfer(address,uint256)",
        "transferFrom(address,address,uint256)",
    ]
    assert erc20.event_signatures() == ["Transfer(address,address,uint256)"]
    assert FilePath(h).load().function_signatures() == ["getValue()"]


def test_inline_json_list_of_strings_is_human_readable():
    doc = parse_document(json.dumps(["function a() view returns (bool)", "event B(uint8 x)"]))
    assert doc.function_signatures() == ["a()"]
    assert doc.event_signatures() == ["B(uint8)"]


def test_parse_document_rejects_bad_json():
    with pytest.raises(AbiParseError):
        parse_document("[{oops}]")


def test_remote_url_fetch(monkeypatch, erc20_json):
    seen = {}

    def fake_get(url, params=None, timeout=None, headers=None):
        seen.update(url=url, params=params, timeout=timeout, headers=headers)
        return _Resp(erc20_json)

    monkeypatch.setattr(requests, "get", fake_get)
    cfg = AbigenConfig(fetch_timeout=3.5)
    doc = RemoteRef("https://example.com/erc20.json").load(cfg)

    assert seen["url"] == "https://example.com/erc20.json"
    assert seen["timeout"] == 3.5
    assert seen["headers"]["Accept"] == "application/json"
    assert "balanceOf(address)" in doc.function_signatures()


def test_etherscan_envelope_and_api_key(monkeypatch, erc20_json):
    seen = {}

    def fake_get(url, params=None, timeout=None, headers=None):
        seen.update(url=url, params=params)
        return _Resp(json.dumps({"status": "1", "message": "OK", "result": erc20_json}))

    monkeypatch.setattr(requests, "get", fake_get)
    cfg = AbigenConfig(etherscan_api_key="KEY")
    doc = RemoteRef("etherscan:0xdead").load(cfg)

    assert seen["url"].startswith("https://api.etherscan.io/api?")
    assert "address=0xdead" in seen["url"]
    assert "apikey" not in seen["url"]
    assert seen["params"] == {"apikey": "KEY"}
    assert doc.event_signatures() == ["Transfer(address,address,uint256)"]


def test_api_key_with_custom_etherscan_template(monkeypatch, erc20_json):
    seen = {}

    def fake_get(url, params=None, **kw):
        seen.update(url=url, params=params)
        return _Resp(json.dumps({"status": "1", "result": erc20_json}))

    monkeypatch.setattr(requests, "get", fake_get)
    cfg = AbigenConfig(etherscan_url="https://scan.example.org/abi/{id}", etherscan_api_key="KEY")
    RemoteRef("etherscan:0xdead").load(cfg)

    assert seen["url"] == "https://scan.example.org/abi/0xdead"
    assert seen["params"] == {"apikey": "KEY"}


def test_api_key_only_goes_to_etherscan():
    cfg = AbigenConfig(etherscan_api_key="KEY")
    assert RemoteRef("npm:pkg/abi.json").params(cfg) == {}
    assert RemoteRef("etherscan:0x1").params(AbigenConfig()) == {}


def test_npm_registry_url():
    assert RemoteRef("npm:pkg/abi.json").url(AbigenConfig()) == "https://unpkg.com/pkg/abi.json"


def test_etherscan_error_status(monkeypatch):
    monkeypatch.setattr(
        requests, "get", lambda url, **kw: _Resp(json.dumps({"status": "0", "result": "Invalid address"}))
    )
    with pytest.raises(SourceError) as ei:
        RemoteRef("etherscan:0xbad").load(AbigenConfig())
    assert ei.value.kind is SourceErrorKind.FETCH
    assert "Invalid address" in str(ei.value)


def test_http_error_is_a_fetch_failure(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, **kw: _Resp("not found", status=404))
    with pytest.raises(SourceError) as ei:
        RemoteRef("https://example.com/missing.json").load(AbigenConfig())
    assert ei.value.kind is SourceErrorKind.FETCH
    assert "404" in str(ei.value)


def test_transport_error_is_a_fetch_failure(monkeypatch):
    calls = []

    def boom(url, **kw):
        calls.append(url)
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", boom)
    with pytest.raises(SourceError) as ei:
        RemoteRef("https://example.com/abi.json").load(AbigenConfig())
    assert ei.value.kind is SourceErrorKind.FETCH
    assert isinstance(ei.value.__cause__, requests.ConnectionError)
    # no retries
    assert len(calls) == 1


def test_unknown_registry_on_load():
    with pytest.raises(SourceError) as ei:
        RemoteRef("ipfs:QmHash").load(AbigenConfig())
    assert ei.value.kind is SourceErrorKind.FETCH
