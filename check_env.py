#!/usr/bin/env python3
"""Print the effective configuration and check that reference data loads."""

from pathlib import Path
import sys


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Freight Compare configuration check")
    print("=" * 60)
    if env_file.exists():
        print(f"Found .env file at: {env_file}")
    else:
        print(f"No .env file at {env_file}; using FC_* environment variables and defaults.")
    print()

    sys.path.insert(0, str(project_root / "src"))
    from freightcompare.config import settings
    from freightcompare.data.postal_repository import get_postal_rate_card
    from freightcompare.data.slab_repository import get_vehicle_slabs
    from freightcompare.data.zone_repository import get_pincode_directory
    from freightcompare.providers.vendors import JsonVendorDirectory

    print(f"Distance service:     {settings.distance_service_url or 'not configured (centroid estimates)'}")
    print(f"Vendor directory:     {settings.vendor_directory_file}")
    print(f"Vehicle slabs:        {settings.vehicle_slab_file}")
    print(f"Postal rates:         {settings.postal_rate_file}")
    print(f"Pincode zones:        {settings.pincode_zone_file}")
    print(f"Compare cache TTL:    {settings.compare_cache_ttl_seconds:.0f}s")
    print(f"Allow-list customers: {len(settings.tied_up_allow_lists)}")
    print()

    try:
        slabs = get_vehicle_slabs()
        postal = get_postal_rate_card()
        directory = get_pincode_directory()
        vendors = JsonVendorDirectory()
    except (OSError, ValueError) as exc:
        print(f"ERROR: reference data failed to load: {exc}")
        return 1

    print(f"Loaded {len(slabs)} vehicle slabs, {len(postal.bands)} postal bands, "
          f"{len(directory.zones)} zone prefixes, {len(vendors)} vendors.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
