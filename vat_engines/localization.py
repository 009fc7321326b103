"""
Box descriptions and validation messages for VAT return output.

Read-only lookup tables keyed by box and by the closed ``Language`` enum.
The calculator never branches on language; it only looks strings up here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Language(str, Enum):
    EN = "en"
    TR = "tr"

    @classmethod
    def resolve(cls, value: Language | str | None) -> Language:
        """Return the matching language, falling back to English."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.EN


@dataclass(frozen=True)
class BoxDescription:
    name: Mapping[Language, str]
    description: Mapping[Language, str]


def _text(en: str, tr: str) -> Mapping[Language, str]:
    return MappingProxyType({Language.EN: en, Language.TR: tr})


BOX_DESCRIPTIONS: Mapping[str, BoxDescription] = MappingProxyType({
    "box1": BoxDescription(
        name=_text("VAT due on sales", "Satışlardan doğan KDV"),
        description=_text(
            "VAT due on sales and other outputs",
            "Satış ve diğer çıktılardan doğan KDV",
        ),
    ),
    "box2": BoxDescription(
        name=_text("VAT due on EU acquisitions", "AB alımlarından doğan KDV"),
        description=_text(
            "VAT due on acquisitions from EU member states (legacy)",
            "AB üye devletlerinden alımlardan doğan KDV (eski)",
        ),
    ),
    "box3": BoxDescription(
        name=_text("Total VAT due", "Toplam KDV borcu"),
        description=_text(
            "Total VAT due (Box 1 + Box 2)",
            "Toplam KDV borcu (Kutu 1 + Kutu 2)",
        ),
    ),
    "box4": BoxDescription(
        name=_text("VAT reclaimed", "Geri alınan KDV"),
        description=_text(
            "VAT reclaimed on purchases and other inputs",
            "Satın almalar ve diğer girdilerden geri alınan KDV",
        ),
    ),
    "box5": BoxDescription(
        name=_text("Net VAT", "Net KDV"),
        description=_text(
            "Net VAT to pay or reclaim (Box 3 - Box 4)",
            "Ödenecek veya geri alınacak net KDV (Kutu 3 - Kutu 4)",
        ),
    ),
    "box6": BoxDescription(
        name=_text("Total sales", "Toplam satışlar"),
        description=_text(
            "Total value of sales and outputs (excluding VAT)",
            "Satış ve çıktıların toplam değeri (KDV hariç)",
        ),
    ),
    "box7": BoxDescription(
        name=_text("Total purchases", "Toplam alımlar"),
        description=_text(
            "Total value of purchases and inputs (excluding VAT)",
            "Satın alma ve girdilerin toplam değeri (KDV hariç)",
        ),
    ),
    "box8": BoxDescription(
        name=_text("EU supplies", "AB teslimleri"),
        description=_text(
            "Total value of supplies to EU (excluding VAT)",
            "AB'ye teslimlerin toplam değeri (KDV hariç)",
        ),
    ),
    "box9": BoxDescription(
        name=_text("EU acquisitions", "AB alımları"),
        description=_text(
            "Total value of acquisitions from EU (excluding VAT)",
            "AB'den alımların toplam değeri (KDV hariç)",
        ),
    ),
})


# Templates take: box_number, label (e.g. "BOX4"), expected, actual, legacy_name.
VALIDATION_MESSAGES: Mapping[str, Mapping[Language, str]] = MappingProxyType({
    "BOX3_MISMATCH": _text(
        "Box 3 should equal Box 1 + Box 2 (expected {expected}, got {actual})",
        "Kutu 3, Kutu 1 + Kutu 2'ye eşit olmalıdır (beklenen {expected}, bulunan {actual})",
    ),
    "BOX5_MISMATCH": _text(
        "Box 5 should equal Box 3 - Box 4 (expected {expected}, got {actual})",
        "Kutu 5, Kutu 3 - Kutu 4'e eşit olmalıdır (beklenen {expected}, bulunan {actual})",
    ),
    "NEGATIVE_VALUE": _text(
        "{label} should not be negative",
        "{label} negatif olmamalıdır",
    ),
    "LEGACY_BOX_NON_ZERO": _text(
        "Box {box_number} ({legacy_name}) should be 0 post-Brexit",
        "Kutu {box_number} ({legacy_name}) Brexit sonrası 0 olmalıdır",
    ),
})

LEGACY_BOX_NAMES: Mapping[str, Mapping[Language, str]] = MappingProxyType({
    "box2": _text("EU acquisitions", "AB alımları"),
    "box8": _text("EU supplies", "AB teslimleri"),
    "box9": _text("EU acquisitions", "AB alımları"),
})
