"""Decode receipt logs into named events using the known contract ABIs."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from web3 import Web3
from web3.logs import DISCARD

from ...models import DecodedEvent
from . import abis
from .parser import event_param_name, to_hex

logger = logging.getLogger(__name__)

DEFAULT_ABIS = (abis.PROTOCOL_ABI, abis.SWAP_NETWORK_ABI)


def _plain(value: Any) -> Any:
    """bytes32 arguments become hex strings, everything else passes through."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    return value


class ReceiptDecoder:
    """Decode every log in a receipt that matches a registered event ABI.

    Decoding is offline; the web3 instance never talks to a node.
    """

    def __init__(self, abi_sets: Iterable[list[dict[str, Any]]] = DEFAULT_ABIS) -> None:
        w3 = Web3()
        self._events: list[Any] = []
        for abi in abi_sets:
            contract = w3.eth.contract(abi=abi)
            for entry in abi:
                if entry.get("type") == "event":
                    self._events.append(getattr(contract.events, entry["name"])())

    def decode_logs(self, receipt: Any) -> list[DecodedEvent]:
        if not receipt:
            return []

        decoded: list[tuple[int, DecodedEvent]] = []
        for event in self._events:
            for log in event.process_receipt(receipt, errors=DISCARD):
                decoded.append(
                    (
                        int(log.get("logIndex", 0)),
                        DecodedEvent(
                            name=log["event"],
                            args={
                                event_param_name(k): _plain(v)
                                for k, v in dict(log["args"]).items()
                            },
                            address=str(log.get("address", "")),
                        ),
                    )
                )

        decoded.sort(key=lambda item: item[0])
        return [event for _, event in decoded]

