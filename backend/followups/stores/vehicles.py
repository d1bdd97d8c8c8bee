"""Vehicle persistence."""
from __future__ import annotations

from typing import Any

from sqlalchemy import asc, delete, desc, func, select

from ..errors import NotFound
from ..models import Vehicle
from .base import Store
from .filters import Filters, Metadata, calculate_metadata
from .versioning import update_versioned

SORT_SAFELIST = (
    "id",
    "year",
    "color",
    "body_type",
    "created_at",
    "-id",
    "-year",
    "-color",
    "-body_type",
    "-created_at",
)


class VehicleStore(Store):

    async def insert(self, **fields: Any) -> Vehicle:
        vehicle = Vehicle(**fields, version=1)
        self.session.add(vehicle)
        await self.commit()
        return vehicle

    async def get(self, vehicle_id: int) -> Vehicle:
        if vehicle_id < 1:
            raise NotFound()
        result = await self.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
        vehicle = result.scalar_one_or_none()
        if vehicle is None:
            raise NotFound()
        return vehicle

    async def update(
        self, vehicle: Vehicle, changes: dict[str, Any], observed_version: int | None = None
    ) -> int:
        return await update_versioned(self, vehicle, changes, observed_version)

    async def delete(self, vehicle_id: int) -> None:
        if vehicle_id < 1:
            raise NotFound()
        result = await self.execute(delete(Vehicle).where(Vehicle.id == vehicle_id))
        if result.rowcount == 0:
            await self.commit()
            raise NotFound()
        await self.commit()

    async def get_all(self, filters: Filters) -> tuple[list[Vehicle], Metadata]:
        column = getattr(Vehicle, filters.sort_column())
        direction = desc if filters.sort_descending() else asc

        statement = (
            select(func.count().over().label("total_records"), Vehicle)
            .order_by(direction(column), Vehicle.id.asc())
            .limit(filters.limit())
            .offset(filters.offset())
        )
        rows = (await self.execute(statement)).all()

        total_records = rows[0].total_records if rows else 0
        vehicles = [row.Vehicle for row in rows]
        return vehicles, calculate_metadata(total_records, filters.page, filters.page_size)
