"""Vehicle endpoints for the FastAPI backend."""
from fastapi import APIRouter, Depends, Header, Query, Response, status

from ..dependencies import get_vehicle_store, require_activated_user
from ..models import User
from ..schemas import MetadataRead, VehicleCreate, VehicleRead, VehicleUpdate
from ..stores import SORT_SAFELIST, Filters, VehicleStore
from ..validation import Validator, validate_vehicle

router = APIRouter(prefix="/v1/vehicles", tags=["vehicles"])


@router.get("")
async def list_vehicles(
    page: int = Query(default=1),
    page_size: int = Query(default=20),
    sort: str = Query(default="id"),
    store: VehicleStore = Depends(get_vehicle_store),
) -> dict:
    """Return one page of vehicles plus paging metadata."""

    filters = Filters(page=page, page_size=page_size, sort=sort, sort_safelist=SORT_SAFELIST)
    v = Validator()
    filters.validate(v)
    v.raise_if_invalid()

    vehicles, metadata = await store.get_all(filters)
    return {
        "vehicles": [VehicleRead.model_validate(vehicle) for vehicle in vehicles],
        "metadata": MetadataRead.model_validate(metadata),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    payload: VehicleCreate,
    response: Response,
    current_user: User = Depends(require_activated_user),
    store: VehicleStore = Depends(get_vehicle_store),
) -> dict:
    fields = payload.model_dump()
    v = Validator()
    validate_vehicle(v, fields)
    v.raise_if_invalid()

    vehicle = await store.insert(**fields)
    response.headers["Location"] = f"/v1/vehicles/{vehicle.id}"
    return {"vehicle": VehicleRead.model_validate(vehicle)}


@router.get("/{vehicle_id}")
async def show_vehicle(
    vehicle_id: int, store: VehicleStore = Depends(get_vehicle_store)
) -> dict:
    vehicle = await store.get(vehicle_id)
    return {"vehicle": VehicleRead.model_validate(vehicle)}


@router.patch("/{vehicle_id}")
async def update_vehicle(
    vehicle_id: int,
    payload: VehicleUpdate,
    expected_version: int | None = Header(default=None, alias="X-Expected-Version"),
    current_user: User = Depends(require_activated_user),
    store: VehicleStore = Depends(get_vehicle_store),
) -> dict:
    """Apply a partial update guarded by the vehicle's version.

    The version is the one sent in ``X-Expected-Version`` when present,
    otherwise the one just read.
    """

    vehicle = await store.get(vehicle_id)
    observed_version = vehicle.version if expected_version is None else expected_version

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    merged = editable_fields(vehicle)
    merged.update(changes)

    v = Validator()
    validate_vehicle(v, merged)
    v.raise_if_invalid()

    await store.update(vehicle, changes, observed_version)
    return {"vehicle": VehicleRead.model_validate(vehicle)}


@router.delete("/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: int,
    current_user: User = Depends(require_activated_user),
    store: VehicleStore = Depends(get_vehicle_store),
) -> dict:
    await store.delete(vehicle_id)
    return {"message": "vehicle successfully deleted"}


def editable_fields(vehicle) -> dict:
    return {field: getattr(vehicle, field) for field in VehicleCreate.model_fields}
