"""Derivation of the works collection from contracts.

A work is identified by its code. The first contract carrying a code
supplies the work's descriptive fields; every contract with that code
adds to its contract count and revenue.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from core.constants import CONTRACTS_COLLECTION, WORK_ID_PREFIX, WORKS_COLLECTION
from core.logging_config import get_logger
from core.types import Record
from seed.seeding import seed_collection
from store.record_store import RecordStore

_LOGGER = get_logger(__name__)
_LEADING_INTEGER = re.compile(r"^\s*[+-]?\d+")
_WORK_FIELDS = (
    "code",
    "soHopDong",
    "soPhuLuc",
    "idKenh",
    "tenKenh",
    "tenTacPham",
    "tacGia",
    "tacGiaNhac",
    "tacGiaLoi",
    "ngayBatDau",
    "ngayKetThuc",
    "thoiLuong",
    "hinhThuc",
    "mucNhuanBut",
    "tinhTrang",
)


def parse_royalty(royalty: object) -> int:
    """Parse a royalty amount entered with thousands separators.

    Args:
        royalty: Stored royalty value, e.g. ``"1,500,000"``.

    Returns:
        Integer amount from the leading digits; 0 when none are present.
    """
    if isinstance(royalty, bool):
        return 0
    if isinstance(royalty, (int, float)):
        return int(royalty)
    if not isinstance(royalty, str):
        return 0
    match = _LEADING_INTEGER.match(royalty.replace(",", ""))
    return int(match.group()) if match else 0


def derive_works(contracts: Iterable[Mapping[str, Any]]) -> list[Record]:
    """Group contracts into works by code.

    Contracts without an id, a code, or a work title are skipped.

    Args:
        contracts: Stored contract records.

    Returns:
        Work records in order of first appearance.
    """
    works: dict[str, Record] = {}
    for contract in contracts:
        code = contract.get("code")
        if not code or not contract.get("tenTacPham") or not contract.get("id"):
            continue
        revenue = parse_royalty(contract.get("mucNhuanBut"))
        work = works.get(code)
        if work is None:
            work = {"id": f"{WORK_ID_PREFIX}{contract.get('id')}"}
            for key in _WORK_FIELDS:
                if key in contract:
                    work[key] = contract[key]
            work["totalContracts"] = 1
            work["totalRevenue"] = revenue
            works[code] = work
            continue
        work["totalContracts"] += 1
        work["totalRevenue"] += revenue
    return list(works.values())


def seed_works_from_contracts(store: RecordStore) -> int:
    """Seed an empty works collection from stored contracts.

    Returns:
        Number of works written.
    """
    works = derive_works(store.get_all(CONTRACTS_COLLECTION))
    if not works:
        _LOGGER.debug("works_derivation_empty")
        return 0
    return seed_collection(store, WORKS_COLLECTION, works)
