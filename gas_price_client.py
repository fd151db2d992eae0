#!/usr/bin/env python3
"""
gas_price_client.py — Fetch the current gas price from an EVM JSON-RPC node.

What it does:
- POSTs a single `eth_gasPrice` JSON-RPC request through web3's HTTPProvider
  (fixed 10s timeout, no retries)
- Validates the response: an `error` member always wins, a missing `result`
  is a failure of its own
- Decodes the hex quantity (optional 0x prefix) into an integer amount of wei

Every failure is raised as a subclass of GasPriceError so callers can tell
transport problems apart from node-reported errors without matching strings.

Usage:
  from gas_price_client import fetch_price
  wei = fetch_price("https://eth.drpc.org")
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import requests
from eth_utils import remove_0x_prefix, to_bytes
from web3 import Web3

log = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds
REQUEST_ID = 1
GAS_PRICE_METHOD = "eth_gasPrice"
MAX_QUANTITY = 2**128 - 1

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


class GasPriceError(RuntimeError):
    """Base class for every way a gas price lookup can fail."""


class TransportError(GasPriceError):
    """Network, TLS, HTTP status or timeout failure."""


class MalformedResponseError(GasPriceError):
    """The response body was not a JSON object."""


class RpcReportedError(GasPriceError):
    """The node answered with a JSON-RPC `error` member."""

    def __init__(self, message: str):
        super().__init__(f"RPC error: {message}")
        self.message = message


class MissingResultError(GasPriceError):
    """Neither `error` nor `result` was present."""


class NumericParseError(GasPriceError):
    """The `result` string is not a valid unsigned hex quantity."""

    def __init__(self, value: Any, reason: str):
        super().__init__(f"Invalid hex quantity {value!r}: {reason}")
        self.value = value


def build_request(method: str = GAS_PRICE_METHOD, params: Any = None) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "method": method,
        "params": list(params or []),
        "id": REQUEST_ID,
    }


def encode_request(method: str = GAS_PRICE_METHOD, params: Any = None) -> bytes:
    return to_bytes(text=json.dumps(build_request(method, params), separators=(",", ":")))


class GasPriceProvider(Web3.HTTPProvider):
    """
    HTTPProvider that posts the exact envelope from build_request().

    web3 numbers requests from its own counter; every poll here is sent
    with id 1 instead.
    """

    def encode_rpc_request(self, method, params) -> bytes:
        return encode_request(method, params)


def decode_quantity(hex_str: Any) -> int:
    """
    Decode a hex quantity such as "0x3b9aca00" into an int.

    The 0x prefix is optional and digits are case-insensitive. Signs,
    underscores and whitespace are rejected, as are values above 2**128 - 1.
    """
    if not isinstance(hex_str, str):
        raise NumericParseError(hex_str, "expected a string")

    # strips a single 0x or 0X; "0x0x1" stays invalid
    digits = remove_0x_prefix(hex_str)
    if not _HEX_DIGITS.fullmatch(digits):
        raise NumericParseError(hex_str, "not a base-16 number")

    value = int(digits, 16)
    if value > MAX_QUANTITY:
        raise NumericParseError(hex_str, "exceeds 128 bits")
    return value


def parse_response(response: Any) -> int:
    if not isinstance(response, dict):
        raise MalformedResponseError(
            f"Malformed JSON-RPC response: expected an object, got {type(response).__name__}"
        )

    # An error member wins even when a result is also present
    error = response.get("error")
    if error is not None:
        if isinstance(error, dict):
            message = error.get("message")
            raise RpcReportedError(str(message) if message is not None else str(error))
        raise RpcReportedError(str(error))

    result = response.get("result")
    if result is None:
        raise MissingResultError("No result in response")

    return decode_quantity(result)


class GasPriceClient:
    """Synchronous eth_gasPrice client for a single RPC endpoint."""

    def __init__(self, endpoint: str, provider: Optional[Any] = None):
        self.endpoint = endpoint
        if provider is None:
            provider = GasPriceProvider(
                endpoint,
                request_kwargs={"timeout": REQUEST_TIMEOUT},
                exception_retry_configuration=None,
            )
        self.provider = provider

    def fetch_price(self) -> int:
        """Return the node's current gas price in wei."""
        request = build_request()
        log.debug("POST %s %s", self.endpoint, request)
        try:
            response = self.provider.make_request(request["method"], request["params"])
        except requests.exceptions.JSONDecodeError as exc:
            raise MalformedResponseError(f"Malformed JSON-RPC response: {exc}") from exc
        except requests.exceptions.Timeout as exc:
            raise TransportError(f"Request timed out after {REQUEST_TIMEOUT}s: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Transport error: {exc}") from exc
        except ValueError as exc:
            # json.JSONDecodeError from web3's response decoder
            raise MalformedResponseError(f"Malformed JSON-RPC response: {exc}") from exc

        log.debug("response from %s: %s", self.endpoint, response)
        return parse_response(response)


def fetch_price(endpoint: str) -> int:
    return GasPriceClient(endpoint).fetch_price()


__all__ = [
    "GasPriceClient",
    "GasPriceError",
    "GasPriceProvider",
    "MalformedResponseError",
    "MissingResultError",
    "NumericParseError",
    "RpcReportedError",
    "TransportError",
    "build_request",
    "decode_quantity",
    "encode_request",
    "fetch_price",
    "parse_response",
]
