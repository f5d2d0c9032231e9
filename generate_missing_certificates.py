import argparse
import asyncio
import uuid

from lms.config import configure_logging
from lms.database import AsyncSessionLocal
from lms.helpers.certificate_assigner import generate_missing_certificates


async def run(franchise_id=None):
    """
    Issue certificates for completed enrollments that do not have one yet.
    Safe to run repeatedly.
    """
    async with AsyncSessionLocal() as session:
        summary = await generate_missing_certificates(session, franchise_id)

    print(f"Completed enrollments checked: {summary['total']}")
    print(f"Certificates generated:        {summary['generated']}")
    print(f"Already issued:                {summary['skipped_existing']}")
    print(f"Certificates disabled:         {summary['skipped_disabled']}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate missing course certificates")
    parser.add_argument("--franchise", type=uuid.UUID, default=None, help="Only this franchise id")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(run(args.franchise))
