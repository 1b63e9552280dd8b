from dataclasses import astuple, dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Tuple

from cashback_ingest.domain.cashback.schema import DATA_COLUMNS

# Value a timestamp keeps when its cell is empty or unparseable.
ZERO_TIMESTAMP = datetime.min


@dataclass
class CashbackRecord:
    """One shipment/cashback transaction. Field order matches ``DATA_COLUMNS``."""
    no_waybill: str = ""
    tgl_pengiriman: datetime = ZERO_TIMESTAMP
    drop_point_outgoing: str = ""
    sprinter_pickup: str = ""
    tempat_tujuan: str = ""
    keterangan: str = ""
    berat_yang_ditagih: float = 0.0
    cod: int = 0
    biaya_asuransi: float = 0.0
    biaya_kirim: int = 0
    biaya_lainnya: int = 0
    total_biaya: float = 0.0
    klien_pengiriman: str = ""
    metode_pembayaran: str = ""
    nama_pengirim: str = ""
    sumber_waybill: str = ""
    paket_retur: str = ""
    waktu_ttd: datetime = ZERO_TIMESTAMP
    layanan: str = ""
    diskon: int = 0
    total_biaya_setelah_diskon: int = 0
    agen_tujuan: str = ""
    nik: str = ""
    kode_promo: str = ""
    kat: str = ""

    def to_job(self, line_number: int = 0) -> "IngestJob":
        return IngestJob(line_number=line_number, values=astuple(self))


@dataclass(frozen=True)
class IngestJob:
    """Insert-ready values for one record, positionally aligned with ``DATA_COLUMNS``."""
    line_number: int
    values: Tuple[Any, ...] = field(default_factory=tuple)

    def as_params(self) -> Dict[str, Any]:
        if len(self.values) != len(DATA_COLUMNS):
            raise ValueError(
                f"Job for line {self.line_number} has {len(self.values)} values, "
                f"expected {len(DATA_COLUMNS)}"
            )
        return dict(zip(DATA_COLUMNS, self.values))


def _check_field_order() -> None:
    names = [f.name for f in fields(CashbackRecord)]
    if names != DATA_COLUMNS:
        raise RuntimeError("CashbackRecord fields are out of sync with DATA_COLUMNS")


_check_field_order()
