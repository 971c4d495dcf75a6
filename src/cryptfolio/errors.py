"""Exception hierarchy for cryptfolio.

Only validation errors reach callers of the aggregation core. Source
failures are raised inside adapters and converted to fetch results there.
"""

from __future__ import annotations


class CryptfolioError(Exception):
    """Base class for all cryptfolio errors."""


class UnknownChainError(CryptfolioError, ValueError):
    """Requested chain identifier is not in the chain registry."""

    def __init__(self, chain_id: object):
        self.chain_id = chain_id
        super().__init__(f"Unknown chain '{chain_id}'")


class InvalidAddressFormatError(CryptfolioError, ValueError):
    """Address does not match the structural format of its chain."""

    def __init__(self, address: str, chain_id: object):
        self.address = address
        self.chain_id = chain_id
        super().__init__(f"Invalid {chain_id} address: {address!r}")


class SourceUnavailableError(CryptfolioError):
    """An RPC or REST source failed, timed out or returned malformed data."""

    def __init__(self, source: str, detail: object):
        self.source = source
        self.detail = detail
        super().__init__(f"{source} unavailable: {detail}")


class WalletExistsError(CryptfolioError):
    """Wallet with the same address and chain is already tracked."""
