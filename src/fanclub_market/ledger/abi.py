"""Minimal ABI for the FanClubFactory contract.

Only the entries the client calls are listed. A full ABI exported by the
contract build can be supplied instead through `ledger.abi_path`.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional


def _fn(name: str, inputs: List[Dict[str, str]], outputs: List[Dict[str, str]], mutability: str) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


_UINT = "uint256"

FAN_CLUB_FACTORY_ABI: List[Dict[str, Any]] = [
    _fn("getFanClubCount", [], [{"name": "", "type": _UINT}], "view"),
    _fn(
        "getFanClub",
        [{"name": "index", "type": _UINT}],
        [
            {"name": "name", "type": "string"},
            {"name": "description", "type": "string"},
            {"name": "fanType", "type": "uint8"},
            {"name": "tokenAddress", "type": "address"},
            {"name": "image", "type": "string"},
            {"name": "totalShares", "type": _UINT},
            {"name": "sharePrice", "type": _UINT},
            {"name": "creator", "type": "address"},
        ],
        "view",
    ),
    _fn(
        "createFanClub",
        [
            {"name": "name", "type": "string"},
            {"name": "description", "type": "string"},
            {"name": "fanType", "type": "uint8"},
            {"name": "image", "type": "string"},
        ],
        [],
        "nonpayable",
    ),
    _fn("buyShares", [{"name": "fanClubIndex", "type": _UINT}, {"name": "numShares", "type": _UINT}], [], "payable"),
    _fn("sellShares", [{"name": "fanClubIndex", "type": _UINT}, {"name": "numShares", "type": _UINT}], [], "nonpayable"),
]


def load_abi(path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return the bundled ABI, or the one stored at `path`.

    Accepts both a bare ABI list and a build artifact with an "abi" key.
    """
    if not path:
        return FAN_CLUB_FACTORY_ABI
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("abi", [])
    return list(data)
