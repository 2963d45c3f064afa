"""
abigen.runtime
==============

The small runtime that generated bindings import.

Generated contract classes derive from `BaseContract`; each generated method
returns a `ContractCall`, an immutable request builder:

    token = ERC20Token("0x6b17...", transport=rpc, codec=codec)
    balance = token.balance_of("0xabc...").at_block("latest").call()
    tx_hash = token.transfer("0xabc...", 10).from_("0xme...").gas(60_000).send()

Network access and wire encoding are delegated to two injected objects:

- transport : `call(tx, block) -> bytes` and `send_transaction(tx, block) -> str`
- codec     : `encode_call(signature, args) -> bytes`,
              `decode_output(types, data) -> Sequence`,
              `decode_log(signature, inputs, topics, data) -> Sequence`
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import (Any, ClassVar, Dict, Generic, List, Mapping, Optional,
                    Protocol, Sequence, Tuple, TypeVar)

D = TypeVar("D")

__all__ = [
    "Transport",
    "Codec",
    "ContractError",
    "ContractCall",
    "BaseContract",
    "decode_log",
]


class Transport(Protocol):
    def call(self, tx: Mapping[str, Any], block: Optional[Any]) -> bytes: ...

    def send_transaction(self, tx: Mapping[str, Any], block: Optional[Any]) -> str: ...


class Codec(Protocol):
    def encode_call(self, signature: str, args: Sequence[Any]) -> bytes: ...

    def decode_output(self, types: Sequence[str], data: bytes) -> Sequence[Any]: ...

    def decode_log(
        self, signature: str, inputs: Sequence[Tuple[str, bool]], topics: Sequence[Any], data: Any
    ) -> Sequence[Any]: ...


@dataclass(eq=False)
class ContractError(Exception):
    """
    Raised when a contract call fails: the transport rejected it, or its
    return data / log could not be decoded.
    """

    message: str
    signature: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        where = f" [{self.signature}]" if self.signature else ""
        return f"ContractError{where}: {self.message}"


@dataclass(frozen=True)
class ContractCall(Generic[D]):
    """A prepared call to one contract function; setters return a new call."""

    signature: str
    output_types: Tuple[str, ...]
    tx: Mapping[str, Any]
    transport: Any = field(repr=False)
    codec: Any = field(repr=False)
    block: Optional[Any] = None

    def _with_tx(self, **fields: Any) -> "ContractCall[D]":
        return replace(self, tx={**self.tx, **fields})

    def from_(self, sender: str) -> "ContractCall[D]":
        """Sets the `from` field in the transaction."""
        return self._with_tx(**{"from": sender})

    def gas(self, gas: int) -> "ContractCall[D]":
        return self._with_tx(gas=int(gas))

    def gas_price(self, gas_price: int) -> "ContractCall[D]":
        return self._with_tx(gasPrice=int(gas_price))

    def value(self, value: int) -> "ContractCall[D]":
        return self._with_tx(value=int(value))

    def at_block(self, block: Any) -> "ContractCall[D]":
        return replace(self, block=block)

    def call(self) -> D:
        """
        Execute the call without sending a transaction and decode its return data.

        On a state-changing function this is a dry run: the return value is
        computed but no state is mutated.
        """
        try:
            raw = self.transport.call(dict(self.tx), self.block)
        except Exception as e:
            raise ContractError(f"call failed: {e}", signature=self.signature) from e
        try:
            values = list(self.codec.decode_output(self.output_types, raw))
        except Exception as e:
            raise ContractError(f"cannot decode return data: {e}", signature=self.signature) from e
        if len(values) != len(self.output_types):
            raise ContractError(
                f"expected {len(self.output_types)} return values, got {len(values)}",
                signature=self.signature,
            )
        if not self.output_types:
            return None  # type: ignore[return-value]
        if len(values) == 1:
            return values[0]
        return tuple(values)  # type: ignore[return-value]

    def send(self) -> str:
        """Sign and broadcast the transaction; returns its identifier."""
        return self.transport.send_transaction(dict(self.tx), self.block)


class BaseContract:
    """Base for generated contract classes: an address plus transport and codec."""

    ABI: ClassVar[List[Dict[str, Any]]] = []

    def __init__(self, address: str, transport: Any, codec: Any):
        self.address = address
        self.transport = transport
        self.codec = codec

    @property
    def abi(self) -> List[Dict[str, Any]]:
        return self.ABI

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address!r})"

    def _method(self, signature: str, args: Sequence[Any], output_types: Sequence[str]) -> ContractCall[Any]:
        try:
            data = self.codec.encode_call(signature, list(args))
        except Exception as e:
            raise ContractError(f"cannot encode arguments: {e}", signature=signature) from e
        return ContractCall(
            signature=signature,
            output_types=tuple(output_types),
            tx={"to": self.address, "data": data},
            transport=self.transport,
            codec=self.codec,
        )


def decode_log(
    codec: Any,
    signature: str,
    inputs: Sequence[Tuple[str, bool]],
    log: Mapping[str, Any],
    *,
    anonymous: bool = False,
) -> Tuple[Any, ...]:
    """
    Decode the fields of one raw log (`{"topics": [...], "data": ...}`).

    The first topic of a non-anonymous event is its signature hash and is not
    passed to the codec.
    """
    topics = list(log.get("topics") or [])
    if not anonymous:
        if not topics:
            raise ContractError("log has no topics", signature=signature)
        topics = topics[1:]
    try:
        values = list(codec.decode_log(signature, inputs, topics, log.get("data", b"")))
    except Exception as e:
        raise ContractError(f"cannot decode log: {e}", signature=signature) from e
    if len(values) != len(inputs):
        raise ContractError(f"expected {len(inputs)} fields, got {len(values)}", signature=signature)
    return tuple(values)
