"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/reference-data", status_code=status.HTTP_200_OK)
def health_reference_data() -> dict:
    """Report whether the bundled reference tables load."""
    from ...data.postal_repository import get_postal_rate_card
    from ...data.slab_repository import get_vehicle_slabs
    from ...data.zone_repository import get_pincode_directory

    try:
        slabs = get_vehicle_slabs()
        postal = get_postal_rate_card()
        directory = get_pincode_directory()
    except (OSError, ValueError) as exc:
        return {"healthy": False, "error": str(exc)}
    return {
        "healthy": True,
        "vehicle_slabs": len(slabs),
        "postal_bands": len(postal.bands),
        "zone_prefixes": len(directory.zones),
    }
