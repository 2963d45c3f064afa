import pytest

from abigen.abi import parse_abi_json
from abigen.errors import CodegenError
from abigen.expand import (PythonExpander, canonical_signature, expand,
                           py_ident, py_type, snake_case)
from abigen.human_readable import parse_human_readable


def _exec(text: str) -> dict:
    ns: dict = {}
    exec(compile(text, "<generated>", "exec"), ns)
    return ns


@pytest.mark.parametrize(
    "name,expected",
    [
        ("getValue", "get_value"),
        ("balanceOf", "balance_of"),
        ("transferFrom", "transfer_from"),
        ("ERC20Token", "erc20_token"),
        ("Counter", "counter"),
        ("already_snake", "already_snake"),
        ("with-dash", "with_dash"),
    ],
)
def test_snake_case(name, expected):
    assert snake_case(name) == expected


def test_py_ident_avoids_keywords_and_reserved_names():
    assert py_ident("from") == "from_"
    assert py_ident("self") == "self_"
    assert py_ident("address", reserved=frozenset({"address"})) == "address_"
    assert py_ident("2fast") == "_2fast"
    assert py_ident("") == "arg"


def test_canonical_signature():
    assert canonical_signature("transferFrom(address, address, uint)") == "transferFrom(address,address,uint256)"
    assert canonical_signature("getValue()") == "getValue()"
    with pytest.raises(CodegenError):
        canonical_signature("getValue")
    with pytest.raises(CodegenError):
        canonical_signature("f(uint7)")


@pytest.mark.parametrize(
    "abi_type,hint",
    [
        ("uint256", "int"),
        ("int8", "int"),
        ("bool", "bool"),
        ("address", "str"),
        ("string", "str"),
        ("bytes", "bytes"),
        ("bytes32", "bytes"),
        ("uint256[]", "list[int]"),
        ("(uint256,address)[2]", "list[tuple[int, str]]"),
    ],
)
def test_py_type(abi_type, hint):
    assert py_type(abi_type) == hint


def test_get_value_wrapper(counter_hr):
    src = expand("Counter", parse_human_readable(counter_hr), {}, {}, [])
    assert src.contract_name == "Counter"
    assert "class Counter(BaseContract):" in src.text
    assert "    def get_value(self) -> ContractCall[int]:" in src.text
    assert "return self._method('getValue()', [], ('uint256',))" in src.text
    assert src.text.endswith("__all__ = ['Counter']\n")


def test_expansion_is_deterministic(erc20_json):
    doc = parse_abi_json(erc20_json)
    args = ({"transfer(address,uint256)": "send_tokens"}, {"Transfer(address,address,uint256)": "Moved"}, ["functools.total_ordering"])
    first = PythonExpander().expand("ERC20", doc, *args)
    second = PythonExpander().expand("ERC20", parse_abi_json(erc20_json), *args)
    assert first == second
    assert first.text == second.text


def test_method_alias_is_local(erc20_json):
    doc = parse_abi_json(erc20_json)
    plain = expand("ERC20", doc, {}, {}, []).text
    aliased = expand("ERC20", doc, {"transferFrom(address, address, uint)": "transfer_from_to"}, {}, []).text

    assert "def transfer_from(" in plain
    assert "def transfer_from_to(" in aliased
    assert "def transfer_from(" not in aliased
    assert plain.replace("def transfer_from(", "def transfer_from_to(") == aliased


def test_event_class_decoder_and_alias(erc20_json):
    doc = parse_abi_json(erc20_json)
    plain = expand("ERC20", doc, {}, {}, []).text
    assert "class TransferEvent:" in plain
    assert "def decode_transfer_event(" in plain
    assert "    from_: str\n    to: str\n    value: int\n" in plain

    aliased = expand("ERC20", doc, {}, {"Transfer(address,address,uint256)": "Moved"}, []).text
    assert "class MovedEvent:" in aliased
    assert "def decode_moved_event(" in aliased
    assert "TransferEvent" not in aliased
    assert "'MovedEvent', 'decode_moved_event'" in aliased


def test_derives_applied_in_order(erc20_json):
    doc = parse_abi_json(erc20_json)
    text = expand("ERC20", doc, {}, {}, ["functools.total_ordering", "typing.final", "functools.total_ordering"]).text
    assert (
        "@functools.total_ordering\n@typing.final\n@functools.total_ordering\n"
        "@dataclasses.dataclass(frozen=True)\nclass TransferEvent:"
    ) in text
    assert text.count("import functools\n") == 1
    assert text.count("import typing\n") == 1


@pytest.mark.parametrize("derive", ["not a path", "functools.", "1mod.thing"])
def test_invalid_derive(erc20_json, derive):
    with pytest.raises(CodegenError):
        expand("ERC20", parse_abi_json(erc20_json), {}, {}, [derive])


def test_unknown_alias_signatures(erc20_json):
    doc = parse_abi_json(erc20_json)
    with pytest.raises(CodegenError) as ei:
        expand("ERC20", doc, {"mint(address,uint256)": "mint"}, {}, [])
    assert ei.value.contract == "ERC20"
    with pytest.raises(CodegenError):
        expand("ERC20", doc, {}, {"Approval(address,address,uint256)": "Approved"}, [])


@pytest.mark.parametrize("alias", ["class", "not-valid", "address", "_method"])
def test_invalid_method_alias(erc20_json, alias):
    with pytest.raises(CodegenError):
        expand("ERC20", parse_abi_json(erc20_json), {"transfer(address,uint256)": alias}, {}, [])


def test_overloads_need_an_alias(overloaded_json):
    doc = parse_abi_json(overloaded_json)
    with pytest.raises(CodegenError) as ei:
        expand("Overloads", doc, {}, {}, [])
    assert ei.value.identifier == "set_value"

    text = expand("Overloads", doc, {"setValue(string)": "set_value_str"}, {}, []).text
    assert "def set_value(self, value: int) -> ContractCall[None]:" in text
    assert "def set_value_str(self, value: str) -> ContractCall[None]:" in text


def test_alias_colliding_with_generated_name(erc20_json):
    with pytest.raises(CodegenError):
        expand("ERC20", parse_abi_json(erc20_json), {"transferFrom(address,address,uint256)": "transfer"}, {}, [])


def test_event_class_collision():
    doc = parse_human_readable("event Sync(uint112 a)\nevent Sync(uint256 a)")
    with pytest.raises(CodegenError):
        expand("Pair", doc, {}, {}, [])
    text = expand("Pair", doc, {}, {"Sync(uint256)": "SyncWide"}, []).text
    assert "class SyncEvent:" in text and "class SyncWideEvent:" in text


def test_reserved_member_names_are_suffixed():
    doc = parse_human_readable("function address() view returns (address)\nfunction abi() view returns (string)")
    text = expand("Proxy", doc, {}, {}, []).text
    assert "def address_(self)" in text
    assert "def abi_(self)" in text


def test_contract_name_must_give_a_class_name():
    with pytest.raises(CodegenError):
        expand("123", parse_human_readable("function f()"), {}, {}, [])


def test_generated_module_runs(erc20_json, fake_transport, make_codec):
    ns = _exec(expand("ERC20", parse_abi_json(erc20_json), {}, {}, []).text)
    token_cls = ns["ERC20"]
    assert ns["ERC20_ABI"] == token_cls.ABI
    assert [e["name"] for e in token_cls.ABI] == ["balanceOf", "transfer", "transferFrom", "Transfer"]

    codec = make_codec(outputs=[42], log_values=["0xaa", "0xbb", 7])
    token = token_cls("0xc0ffee", transport=fake_transport, codec=codec)
    assert token.balance_of("0xabc").call() == 42
    kind, tx, block = fake_transport.calls[0]
    assert kind == "call"
    assert tx == {"to": "0xc0ffee", "data": b"balanceOf(address):['0xabc']"}
    assert block is None

    assert token.transfer_from("0x1", "0x2", 5).from_("0x1").send().startswith("0x")

    event = ns["decode_transfer_event"]({"topics": ["0xsig", "0xaa", "0xbb"], "data": b"\x07"}, codec)
    assert event == ns["TransferEvent"](from_="0xaa", to="0xbb", value=7)
    assert event.SIGNATURE == "Transfer(address,address,uint256)"
    signature, inputs, topics, data = codec.log_requests[0]
    assert inputs == (("address", True), ("address", True), ("uint256", False))
    assert topics == ["0xaa", "0xbb"]
