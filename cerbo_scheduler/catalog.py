"""Static appointment-type catalog, resolved once into id and internal-name lookups.

Cerbo identifies existing appointments by the type's internal name while bookings
and availability use the numeric id, so both directions are indexed.
"""
from __future__ import annotations
from typing import Iterable
from .config import BUFFER_TYPE_ID
from .models import AppointmentTypeSpec


class UnknownAppointmentType(LookupError):
    def __init__(self, type_id):
        super().__init__(f"Appointment type with ID {type_id} not found")
        self.type_id = type_id


class AppointmentTypeCatalog:
    def __init__(self, specs: Iterable[AppointmentTypeSpec], buffer_type_id: int = BUFFER_TYPE_ID):
        self._by_id: dict[int, AppointmentTypeSpec] = {}
        self._by_name: dict[str, AppointmentTypeSpec] = {}
        for spec in specs:
            if spec.id in self._by_id:
                raise ValueError(f"duplicate appointment type id {spec.id}")
            if spec.internal_name in self._by_name:
                raise ValueError(f"duplicate internal name {spec.internal_name!r}")
            self._by_id[spec.id] = spec
            self._by_name[spec.internal_name] = spec
        self.buffer_type_id = buffer_type_id

    def __iter__(self):
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, type_id: int) -> AppointmentTypeSpec:
        try:
            return self._by_id[type_id]
        except KeyError:
            raise UnknownAppointmentType(type_id) from None

    def by_internal_name(self, internal_name: str | None) -> AppointmentTypeSpec | None:
        if internal_name is None:
            return None
        return self._by_name.get(internal_name)

    def type_id_for_name(self, internal_name: str | None) -> int | None:
        spec = self.by_internal_name(internal_name)
        return spec.id if spec else None

    def is_dual_bookable_name(self, internal_name: str | None) -> bool:
        spec = self.by_internal_name(internal_name)
        return bool(spec and spec.dual_bookable)

    def bookable(self) -> list[AppointmentTypeSpec]:
        """Every type a patient may pick, i.e. everything except the buffer type."""
        return [spec for spec in self._by_id.values() if spec.id != self.buffer_type_id]


DEFAULT_TYPES = (
    AppointmentTypeSpec(
        id=151,
        display_name="Acupuncture",
        internal_name="Acupuncture.Follow-up, self-schd (50 min)",
        duration_minutes=60,
        dual_bookable=False,
    ),
    AppointmentTypeSpec(
        id=144,
        display_name="Vagus Nerve Stem Therapy",
        internal_name="Vagus Nerve Stem Therapy- Initial",
        duration_minutes=30,
        dual_bookable=True,
    ),
    AppointmentTypeSpec(
        id=BUFFER_TYPE_ID,
        display_name="ADMIN-Flexible",
        internal_name="ADMIN-Flexible",
        duration_minutes=30,
        dual_bookable=False,
    ),
)

DEFAULT_CATALOG = AppointmentTypeCatalog(DEFAULT_TYPES)
