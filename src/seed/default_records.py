"""Fixed default records for empty collections.

Users are always seeded; partners and channels are sample data seeded
only on request.
"""

from __future__ import annotations

from core.types import Record


def default_users(last_login: str) -> list[Record]:
    """Return the two default console accounts.

    Args:
        last_login: ISO-8601 timestamp recorded as the accounts' last login.

    Returns:
        Administrator and regular user records with fixed ids.
    """
    return [
        {
            "id": "1",
            "username": "admin",
            "fullName": "Admin User",
            "email": "admin@vcpmc.org",
            "role": "admin",
            "status": "active",
            "lastLogin": last_login,
        },
        {
            "id": "2",
            "username": "user",
            "fullName": "User Client",
            "email": "user@vcpmc.org",
            "role": "user",
            "status": "active",
            "lastLogin": last_login,
        },
    ]


def _partner(
    record_id: str,
    name: str,
    address: str,
    representative: str,
    phone: str,
    email: str,
    website: str,
    signed_contracts: int,
    total_revenue: int,
) -> Record:
    return {
        "id": record_id,
        "tenDonVi": name,
        "diaChi": address,
        "nguoiDaiDien": representative,
        "soDienThoai": phone,
        "email": email,
        "website": website,
        "soHopDongDaKy": signed_contracts,
        "tongDoanhThu": total_revenue,
        "ghiChu": "",
    }


def _channel(
    record_id: str,
    channel_id: str,
    name: str,
    subscribers: int,
    views: int,
    owner: str,
    created_on: str,
) -> Record:
    return {
        "id": record_id,
        "idKenh": channel_id,
        "tenKenh": name,
        "platform": "YouTube",
        "subscribers": subscribers,
        "views": views,
        "nguoiPhuTrach": owner,
        "ngayTao": created_on,
        "trangThai": "Hoạt động",
        "ghiChu": "",
    }


SAMPLE_PARTNERS: tuple[Record, ...] = (
    _partner(
        "1",
        "CÔNG TY CỔ PHẦN GIẢI TRÍ SỐ ĐIỀN QUÂN NETWORK",
        "177 Phan Chu Trinh, phường 13, quận Bình Thạnh, Tp. Hồ Chí Minh",
        "Nguyễn Văn A",
        "0901234567",
        "contact@dienquan.vn",
        "www.dienquan.vn",
        15,
        15000000,
    ),
    _partner(
        "2",
        "BÀ LÊ THỊ HỒNG ĐÀO",
        "Chung cư Hà Đô, Toà Jasmine 2, 118-120 Đường 3/2, phường 12, quận 10, Tp. HCM.",
        "Lê Thị Hồng Đào",
        "0912345678",
        "hongdao@gmail.com",
        "",
        8,
        5600000,
    ),
    _partner(
        "3",
        "CÔNG TY TNHH GIA ĐỊNH AUDIO",
        "44 Lê Trung Nghĩa, phường 12, quận Tân Bình, Tp. Hồ Chí Minh",
        "Trần Văn B",
        "0923456789",
        "info@giadinhaudio.vn",
        "www.giadinhaudio.vn",
        12,
        12000000,
    ),
    _partner(
        "4",
        "CÔNG TY TNHH ĐỘC LẠ VIỆT NAM",
        "58 Đường số 5, Khu biệt thự Phú Thịnh, Phường Phú Thọ, Tp. Thủ Dầu Một",
        "Phạm Thị C",
        "0934567890",
        "contact@doclavietnam.vn",
        "www.doclavietnam.vn",
        10,
        10000000,
    ),
    _partner(
        "5",
        "BÀ ĐINH THỊ ÁNH TUYẾN",
        "Landmark 5, 208 Nguyễn Hữu Cảnh, P.22",
        "Đinh Thị Ánh Tuyến",
        "0945678901",
        "anhtuyen@gmail.com",
        "",
        5,
        5000000,
    ),
    _partner(
        "6",
        "DOANH NGHIỆP TƯ NHÂN DU LỊCH SẢN XUẤT BĂNG TỪ HOÀNG TUẤN",
        "128/1-5 Trần Quốc Thảo, Phường 7",
        "Hoàng Tuấn",
        "0956789012",
        "hoangtuanmedia@gmail.com",
        "www.hoangtuanmedia.vn",
        20,
        25000000,
    ),
    _partner(
        "7",
        "CÔNG TY TNHH TM DV DU LỊCH HI SÀI GÒN",
        "Số 98 Đào Duy Từ, Phường 5",
        "Lê Văn D",
        "0967890123",
        "info@hisaigon.vn",
        "www.hisaigon.vn",
        15,
        18000000,
    ),
    _partner(
        "8",
        "TRUNG TÂM CA NHẠC NHẸ THÀNH PHỐ HỒ CHÍ MINH",
        "57 Cao Thắng, Phường 3",
        "Nguyễn Văn E",
        "0978901234",
        "contact@canhacnhe.com.vn",
        "www.canhacnhe.com.vn",
        25,
        30000000,
    ),
)

SAMPLE_CHANNELS: tuple[Record, ...] = (
    _channel("1", "UCZO7RX6l-jFYB8lEjwxRwWQ", "Đào Kỳ Anh Official", 125000, 15000000, "Tuấn", "15/01/2023"),
    _channel("2", "UCu6A_PM932GRfYkJwFrYNgg", "HT PRODUCTIONS", 250000, 30000000, "Bình", "10/05/2022"),
    _channel("3", "UCSVUw-eq8DkEh0rN4aOIm9w", "ĐỘC LẠ VIỆT NAM", 500000, 75000000, "Tuấn", "05/03/2020"),
    _channel("4", "UCLMEytIguo2RcuueUMOexbA", "Kevin Đinh Kiệt", 180000, 22000000, "Tuấn", "20/04/2021"),
    _channel(
        "5", "UCmJdpKjC4BguB3KPcGQQPkg", "Đan Trường Singer Official", 1200000, 150000000, "Tuấn", "15/06/2019"
    ),
    _channel("6", "UCXLhjFb3CFBqqNjshjOVE_Q", "Trung Quang Official", 320000, 45000000, "Tuấn", "10/08/2020"),
    _channel("7", "UCDVKwPf7CrLgu58pxR1YqEg", "Đinh Quốc Cường Official", 150000, 18000000, "Tuấn", "25/03/2021"),
    _channel("8", "UCcR8wEGIYrN8Wo61ZGb41Pg", "HiSaigon live music", 420000, 60000000, "Tuấn", "05/05/2020"),
)
