#!/usr/bin/env python3
"""
Seed subscription plans into the database.

Creates default Free, Premium and Enterprise plans. Price references are
read from the environment so the same script works against test and live
billing accounts; a plan without a price reference is stored but not
offered by GET /api/subscription/plans.

Usage:
    python scripts/seed_plans.py           # Seed default plans
    python scripts/seed_plans.py --list    # List current plans
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from chatgate.constants import UNLIMITED_DAILY_LIMIT
from chatgate.db.connection import DatabaseManager
from chatgate.db.repositories import SubscriptionRepository


# =============================================================================
# DEFAULT PLAN CONFIGURATION
# =============================================================================

DEFAULT_PLANS = [
    {
        "plan_type": "free",
        "display_name": "Free",
        "daily_interactions_limit": 100,
        "price_reference": None,
        "price_cents": 0,
        "sort_order": 0,
    },
    {
        "plan_type": "premium",
        "display_name": "Premium",
        "daily_interactions_limit": 1000,
        "price_reference": os.getenv("PREMIUM_PRICE_ID"),
        "price_cents": 2990,
        "sort_order": 1,
    },
    {
        "plan_type": "enterprise",
        "display_name": "Enterprise",
        "daily_interactions_limit": UNLIMITED_DAILY_LIMIT,
        "price_reference": os.getenv("ENTERPRISE_PRICE_ID"),
        "price_cents": 9990,
        "sort_order": 2,
    },
]


async def seed_plans(repository: SubscriptionRepository) -> None:
    """Insert or update the default plans."""
    for plan in DEFAULT_PLANS:
        await repository.upsert_plan(**plan)
        limit = plan["daily_interactions_limit"]
        shown = "unlimited" if limit == UNLIMITED_DAILY_LIMIT else limit
        logger.info(f"  - {plan['plan_type']}: {shown}/day, price={plan['price_reference']}")
    logger.info(f"Seeded {len(DEFAULT_PLANS)} plans")


async def list_plans(repository: SubscriptionRepository) -> None:
    """Print all plans, including inactive ones."""
    plans = await repository.list_plans(active_only=False)
    if not plans:
        logger.info("No plans found")
        return
    for plan in plans:
        logger.info(
            f"  - {plan.plan_type} ({plan.display_name}): "
            f"limit={plan.daily_interactions_limit} price={plan.price_reference} "
            f"active={plan.active}"
        )


async def run(list_only: bool) -> None:
    manager = DatabaseManager()
    repository = SubscriptionRepository(manager)
    try:
        if list_only:
            await list_plans(repository)
        else:
            await seed_plans(repository)
    finally:
        await manager.close_all()


def main():
    parser = argparse.ArgumentParser(description="Seed subscription plans")
    parser.add_argument("--list", action="store_true", help="List current plans")
    args = parser.parse_args()

    asyncio.run(run(args.list))


if __name__ == "__main__":
    main()
