"""Identity providers: who is trading, and who signs.

Signing itself stays with the node or wallet behind the provider; this module
only discovers the active account.
"""
from __future__ import annotations

import logging
from typing import Optional

from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from ..errors import ConnectionDeclined, NotConnected, ProviderUnavailable

logger = logging.getLogger(__name__)

# EIP-1193 "User Rejected Request"
USER_REJECTED = 4001
METHOD_NOT_FOUND = -32601


class IdentityProvider:
    def current_account(self) -> str:
        """Return the active account or raise NotConnected."""
        raise NotImplementedError

    async def request_connection(self) -> str:
        raise NotImplementedError


class StaticIdentityProvider(IdentityProvider):
    """Account fixed by configuration (e.g. an unlocked node account)."""

    def __init__(self, account: Optional[str] = None):
        self.account = account or None
        self._connected = False

    def current_account(self) -> str:
        if not self.account or not self._connected:
            raise NotConnected("no account connected")
        return self.account

    async def request_connection(self) -> str:
        if not self.account:
            raise ProviderUnavailable("no account configured")
        self._connected = True
        return self.account


class Web3IdentityProvider(IdentityProvider):
    """Asks the provider behind an AsyncWeb3 instance to expose an account."""

    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3
        self._account: Optional[str] = None

    def current_account(self) -> str:
        if self._account is None:
            raise NotConnected("no account connected")
        return self._account

    async def request_connection(self) -> str:
        try:
            connected = await self.w3.is_connected()
        except (Web3Exception, OSError):
            connected = False
        if not connected:
            raise ProviderUnavailable("no compatible signing agent reachable")
        try:
            resp = await self.w3.provider.make_request("eth_requestAccounts", [])
            err = resp.get("error")
            if isinstance(err, dict) and err.get("code") == METHOD_NOT_FOUND:
                # Plain nodes do not implement the wallet method
                accounts = list(await self.w3.eth.accounts)
            elif err:
                code = err.get("code") if isinstance(err, dict) else None
                if code == USER_REJECTED:
                    raise ConnectionDeclined("user declined the connection request")
                raise ProviderUnavailable(f"eth_requestAccounts failed: {err}")
            else:
                accounts = list(resp.get("result") or [])
        except (Web3Exception, ValueError, OSError) as e:
            raise ProviderUnavailable(f"eth_requestAccounts failed: {e}") from e
        if not accounts:
            raise ConnectionDeclined("provider exposed no accounts")
        self._account = AsyncWeb3.to_checksum_address(accounts[0])
        logger.info(f"Connected account {self._account}")
        return self._account
