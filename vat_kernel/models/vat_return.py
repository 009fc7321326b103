"""
ORM model for saved VAT returns (``vat_kernel.models.vat_return``).

The engine only reads these rows (estimation and yearly statistics).
``from_box_set`` exists for callers that persist a prepared draft.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from vat_kernel.db.base import TrackedBase
from vat_kernel.domain.values import BOX_KEYS, AccountingScheme, BoxSet, Period


class VatReturnStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    AMENDED = "amended"


class VatReturnModel(TrackedBase):
    """A VAT return for one user and period, boxes in pence."""

    __tablename__ = "vat_returns"

    user_id: Mapped[int] = mapped_column(nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    accounting_scheme: Mapped[str] = mapped_column(String(20), nullable=False, default="standard")
    box1: Mapped[int] = mapped_column(nullable=False, default=0)
    box2: Mapped[int] = mapped_column(nullable=False, default=0)
    box3: Mapped[int] = mapped_column(nullable=False, default=0)
    box4: Mapped[int] = mapped_column(nullable=False, default=0)
    box5: Mapped[int] = mapped_column(nullable=False, default=0)
    box6: Mapped[int] = mapped_column(nullable=False, default=0)
    box7: Mapped[int] = mapped_column(nullable=False, default=0)
    box8: Mapped[int] = mapped_column(nullable=False, default=0)
    box9: Mapped[int] = mapped_column(nullable=False, default=0)
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "period_start", "period_end", name="uq_vat_return_user_period"),
        Index("idx_vat_returns_status", "status"),
        Index("idx_vat_returns_user_period_end", "user_id", "period_end"),
    )

    def to_box_set(self) -> BoxSet:
        return BoxSet.from_mapping({key: getattr(self, key) for key in BOX_KEYS})

    @classmethod
    def from_box_set(
        cls,
        user_id: int,
        period: Period,
        boxes: BoxSet,
        status: VatReturnStatus | str = VatReturnStatus.DRAFT,
        accounting_scheme: AccountingScheme | str = AccountingScheme.STANDARD,
    ) -> "VatReturnModel":
        return cls(
            user_id=user_id,
            period_start=period.start,
            period_end=period.end,
            status=status.value if isinstance(status, VatReturnStatus) else status,
            accounting_scheme=AccountingScheme.parse(accounting_scheme).value,
            **dict(boxes.values()),
        )

    def __repr__(self) -> str:
        return (
            f"<VatReturnModel user={self.user_id} "
            f"{self.period_start}..{self.period_end} [{self.status}] box5={self.box5}>"
        )
