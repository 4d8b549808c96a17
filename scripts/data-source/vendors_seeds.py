import argparse
import json
import asyncio

from shared.config.settings import settings
from shared.models.vendor import ApiVendor
from shared.utils.exceptions import ApiRequestException
from shared.utils.logging_config import get_logger, setup_logging
from vendorsync_api.infrastructure.vendorsync_api_client import VendorSyncApiClient

setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_to_console=settings.log_to_console
    )
logger = get_logger(__name__)

json_filename = "scripts/data-source/vendors.json"


async def seed_vendor(api_client: VendorSyncApiClient, vendor_data: dict) -> ApiVendor:
    """Create one vendor, then its invoices concurrently."""
    invoices = vendor_data.pop("invoices", [])
    vendor = await api_client.create_vendor(vendor_data)
    logger.info(f"Created vendor: {vendor.name} ({vendor.id}), queuing {len(invoices)} invoices")

    results = await asyncio.gather(
        *(api_client.create_invoice(vendor.id, invoice) for invoice in invoices),
        return_exceptions=True
    )
    for invoice, result in zip(invoices, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to seed invoice {invoice.get('invoiceNumber')} for {vendor.name}: {result}")
    return vendor


async def seed_vendors(api_client: VendorSyncApiClient, vendors_data: list[dict]) -> bool:
    """Seed vendors and their invoices through the VendorSync API."""
    results = await asyncio.gather(
        *(seed_vendor(api_client, dict(item)) for item in vendors_data),
        return_exceptions=True
    )

    success_count = 0
    for item, result in zip(vendors_data, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to seed vendor {item.get('name')}: {result}")
        else:
            success_count += 1

    logger.info(f"Seeding complete: {success_count}/{len(vendors_data)} successful")
    return success_count == len(vendors_data)


async def main():
    parser = argparse.ArgumentParser(description="Seed vendors and invoices into the VendorSync API")
    parser.add_argument("--file", default=json_filename, help="JSON file with vendors and nested invoices")
    parser.add_argument("--base-url", default=settings.api_base_url, help="VendorSync API base URL")
    args = parser.parse_args()

    with open(args.file, "r") as f:
        vendors_data = json.load(f)

    api_client = VendorSyncApiClient(base_url=args.base_url)
    try:
        completed = await seed_vendors(api_client, vendors_data)
        if completed:
            logger.info("Vendor seeding completed successfully.")
        else:
            logger.error("Vendor seeding failed.")
    except ApiRequestException as e:
        logger.error(f"Vendor seeding aborted: {e}")
    finally:
        await api_client.close()

if __name__ == "__main__":
    asyncio.run(main())
