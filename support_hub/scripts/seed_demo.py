#!/usr/bin/env python3
"""
Create the demo tickets through the analysis webhook

Usage:
    python support_hub/scripts/seed_demo.py
    python support_hub/scripts/seed_demo.py --count 3 --delay 0
"""

import asyncio
import sys
from pathlib import Path
import argparse

# Project root on the Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv()

from support_hub.config import get_settings
from support_hub.services.analysis_proxy import AnalysisProxy
from support_hub.services.demo import DEMO_TICKETS, DemoSeeder
from support_hub.services.ticket_store import TicketStore
from tqdm import tqdm


async def main():
    parser = argparse.ArgumentParser(description="Seed demo support tickets")
    parser.add_argument("--count", type=int, default=len(DEMO_TICKETS), help="Number of demo tickets (max 5)")
    parser.add_argument("--delay", type=float, default=None, help="Seconds between tickets")
    parser.add_argument("--webhook-url", type=str, default=None, help="Analysis webhook URL override")

    args = parser.parse_args()
    settings = get_settings()
    tickets = DEMO_TICKETS[:max(0, args.count)]

    print("=" * 60)
    print("🌱 Seeding demo tickets")
    print("=" * 60)
    print(f"Tickets: {len(tickets)}")
    print(f"Table: {settings.tickets_table}")
    print(f"Webhook: {args.webhook_url or settings.analysis_webhook_url or '(not configured)'}")
    print("=" * 60)

    seeder = DemoSeeder(
        TicketStore(),
        AnalysisProxy(webhook_url=args.webhook_url),
        delay=args.delay
    )

    try:
        with tqdm(total=len(tickets), desc="Demo tickets") as progress:
            created = await seeder.seed(tickets, on_created=lambda _: progress.update(1))

        print("\n" + "=" * 60)
        print(f"✅ Created {len(created)} tickets")
        for ticket_id in created:
            print(f"   - {ticket_id}")
        print("=" * 60)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
