"""Shared typed models.

This module defines the immutable entity records, store outcome values,
and metadata models used by the store, seeding, and CLI layers.

Entity fields carry their persisted key in dataclass field metadata so one
codec can translate every entity to and from its stored payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

Record = dict[str, Any]

UserRole = Literal["admin", "manager", "user"]
UserStatus = Literal["active", "inactive"]
ContractStatus = Literal["Đã ký", "Tái ký", "Khảo sát", "Đàm phán", "Ký mới"]
ChannelPlatform = Literal["YouTube", "Facebook", "TikTok", "Khác"]
ChannelStatus = Literal["Hoạt động", "Tạm ngưng", "Đã xóa"]


def _key(name: str, **extra: object) -> Any:
    """Return field metadata naming the persisted key."""
    return {"key": name, **extra}


@dataclass(frozen=True)
class NotFound:
    """Outcome for an operation that targeted a missing record.

    Attributes:
        collection: Collection that was searched.
        record_id: Identity that was not found.
    """

    collection: str
    record_id: str


@dataclass(frozen=True)
class DuplicateIdentity:
    """Outcome for a write that would reuse an existing identity.

    Attributes:
        collection: Target collection.
        record_id: Identity that already exists.
    """

    collection: str
    record_id: str


@dataclass(frozen=True)
class StorageFailure:
    """Description of a durable-medium fault.

    Attributes:
        collection: Affected collection, or None for store metadata.
        operation: Operation that hit the fault, e.g. ``save`` or ``load``.
        message: Human-readable cause.
    """

    collection: str | None
    operation: str
    message: str


@dataclass(frozen=True)
class StoreMetadata:
    """Persisted store metadata.

    Attributes:
        schema_version: Layout version of the data root.
        last_sync: ISO-8601 timestamp of the last initialization or restore.
        device_id: Random identifier of the data root.
    """

    schema_version: int
    last_sync: str
    device_id: str


@dataclass(frozen=True)
class UserRecord:
    """Console user account."""

    record_id: str = field(metadata=_key("id"))
    username: str = field(default="", metadata=_key("username"))
    full_name: str = field(default="", metadata=_key("fullName"))
    email: str = field(default="", metadata=_key("email"))
    role: UserRole = field(default="user", metadata=_key("role"))
    status: UserStatus = field(default="active", metadata=_key("status"))
    last_login: str | None = field(default=None, metadata=_key("lastLogin"))
    avatar: str | None = field(default=None, metadata=_key("avatar"))
    extra_fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContractLogEntry:
    """One entry of a contract activity log."""

    record_id: str = field(metadata=_key("id"))
    date: str = field(default="", metadata=_key("date"))
    action: str = field(default="", metadata=_key("action"))
    user: str = field(default="", metadata=_key("user"))
    details: str = field(default="", metadata=_key("details"))
    extra_fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContractRecord:
    """Licensing contract for a work published on a channel.

    Attributes:
        record_id: Store-assigned identity.
        sequence: Row number from the source register.
        field_of_work: Business line of the contract.
        signed_on: Signing date as entered (DD/MM/YYYY).
        contract_number: Contract number.
        appendix_number: Optional appendix number.
        channel_id: Platform channel identifier.
        channel_name: Channel display name.
        organization_name: Contracting organization.
        address: Organization address.
        owner: Staff member responsible for the contract.
        status: Negotiation or signing status.
        royalty: Royalty amount as entered, thousands separated.
        log: Activity log entries.
    """

    record_id: str = field(metadata=_key("id"))
    sequence: int = field(default=0, metadata=_key("stt"))
    field_of_work: str = field(default="", metadata=_key("linhVuc"))
    signed_on: str = field(default="", metadata=_key("ngayKy"))
    contract_number: str = field(default="", metadata=_key("soHopDong"))
    appendix_number: str | None = field(default=None, metadata=_key("soPhuLuc"))
    channel_id: str = field(default="", metadata=_key("idKenh"))
    channel_name: str = field(default="", metadata=_key("tenKenh"))
    organization_name: str = field(default="", metadata=_key("tenDonVi"))
    address: str = field(default="", metadata=_key("diaChi"))
    owner: str = field(default="", metadata=_key("nguoiPhuTrach"))
    status: ContractStatus = field(default="Khảo sát", metadata=_key("tinhTrang"))
    video_id: str | None = field(default=None, metadata=_key("idVideo"))
    code: str = field(default="", metadata=_key("code"))
    work_title: str = field(default="", metadata=_key("tenTacPham"))
    author: str = field(default="", metadata=_key("tacGia"))
    composer: str | None = field(default=None, metadata=_key("tacGiaNhac"))
    lyricist: str | None = field(default=None, metadata=_key("tacGiaLoi"))
    start_date: str = field(default="", metadata=_key("ngayBatDau"))
    end_date: str = field(default="", metadata=_key("ngayKetThuc"))
    period: str | None = field(default=None, metadata=_key("thoiGian"))
    duration: str | None = field(default=None, metadata=_key("thoiLuong"))
    usage_format: str = field(default="", metadata=_key("hinhThuc"))
    royalty: str = field(default="", metadata=_key("mucNhuanBut"))
    note_1: str | None = field(default=None, metadata=_key("ghiChu1"))
    note_2: str | None = field(default=None, metadata=_key("ghiChu2"))
    log: tuple[ContractLogEntry, ...] | None = field(
        default=None, metadata=_key("nhatKy", nested=ContractLogEntry)
    )
    extra_fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkRecord:
    """Licensed creative work aggregated across contracts."""

    record_id: str = field(metadata=_key("id"))
    code: str = field(default="", metadata=_key("code"))
    contract_number: str = field(default="", metadata=_key("soHopDong"))
    appendix_number: str | None = field(default=None, metadata=_key("soPhuLuc"))
    channel_id: str = field(default="", metadata=_key("idKenh"))
    channel_name: str = field(default="", metadata=_key("tenKenh"))
    work_title: str = field(default="", metadata=_key("tenTacPham"))
    author: str = field(default="", metadata=_key("tacGia"))
    composer: str | None = field(default=None, metadata=_key("tacGiaNhac"))
    lyricist: str | None = field(default=None, metadata=_key("tacGiaLoi"))
    start_date: str = field(default="", metadata=_key("ngayBatDau"))
    end_date: str = field(default="", metadata=_key("ngayKetThuc"))
    duration: str | None = field(default=None, metadata=_key("thoiLuong"))
    usage_format: str = field(default="", metadata=_key("hinhThuc"))
    royalty: str = field(default="", metadata=_key("mucNhuanBut"))
    status: ContractStatus = field(default="Khảo sát", metadata=_key("tinhTrang"))
    total_contracts: int = field(default=0, metadata=_key("totalContracts"))
    total_revenue: int = field(default=0, metadata=_key("totalRevenue"))
    extra_fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PartnerRecord:
    """Partner organization holding contracts."""

    record_id: str = field(metadata=_key("id"))
    organization_name: str = field(default="", metadata=_key("tenDonVi"))
    address: str = field(default="", metadata=_key("diaChi"))
    representative: str | None = field(default=None, metadata=_key("nguoiDaiDien"))
    phone: str | None = field(default=None, metadata=_key("soDienThoai"))
    email: str | None = field(default=None, metadata=_key("email"))
    website: str | None = field(default=None, metadata=_key("website"))
    signed_contracts: int = field(default=0, metadata=_key("soHopDongDaKy"))
    total_revenue: int = field(default=0, metadata=_key("tongDoanhThu"))
    note: str | None = field(default=None, metadata=_key("ghiChu"))
    extra_fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChannelRecord:
    """Publishing channel on a video platform."""

    record_id: str = field(metadata=_key("id"))
    channel_id: str = field(default="", metadata=_key("idKenh"))
    channel_name: str = field(default="", metadata=_key("tenKenh"))
    platform: ChannelPlatform = field(default="YouTube", metadata=_key("platform"))
    subscribers: int | None = field(default=None, metadata=_key("subscribers"))
    views: int | None = field(default=None, metadata=_key("views"))
    owner: str = field(default="", metadata=_key("nguoiPhuTrach"))
    created_on: str = field(default="", metadata=_key("ngayTao"))
    status: ChannelStatus = field(default="Hoạt động", metadata=_key("trangThai"))
    note: str | None = field(default=None, metadata=_key("ghiChu"))
    extra_fields: Mapping[str, Any] = field(default_factory=dict)
