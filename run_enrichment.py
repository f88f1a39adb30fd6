"""Embed pending meeting knowledge in batches (backfill helper)."""
import argparse
import asyncio

from app.core.config import settings
from app.features.knowledge import get_knowledge_service
from app.shared.logging_config import setup_logging


async def main(batches: int):
    scheduler = get_knowledge_service().scheduler
    totals = {"fetched": 0, "enriched": 0, "failed": 0}

    for batch in range(1, batches + 1):
        print(f"\n{'='*50}")
        print(f"Batch {batch}/{batches} (size {scheduler.batch_size})")
        print(f"{'='*50}")

        report = await scheduler.run_once()
        totals["fetched"] += report.fetched
        totals["enriched"] += report.enriched
        totals["failed"] += report.failed
        print(f"✓ fetched={report.fetched}, enriched={report.enriched}, failed={report.failed}")

        if report.fetched == 0:
            print("Nothing left to enrich")
            break

    print(f"\n{'='*50}")
    print("FINAL RESULTS:")
    print(f"{'='*50}")
    print(f"  fetched={totals['fetched']}, enriched={totals['enriched']}, failed={totals['failed']}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run knowledge enrichment batches")
    parser.add_argument("--batches", type=int, default=1, help="Maximum number of batches to run")
    args = parser.parse_args()

    setup_logging(service_name=settings.SERVICE_NAME)
    asyncio.run(main(args.batches))
