#!/usr/bin/env python3
"""
Create tables and insert the default service catalog if it is empty
Usage: python seed_services.py
"""

import sys

from handypro.database import Base, SessionLocal, engine
from handypro.domain.catalog.service import CatalogService
from handypro import models  # noqa: F401


def seed_services():
    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()

    try:
        print("🔍 Checking service catalog...\n")
        created = CatalogService(db).seed_default_services()

        if not created:
            print("ℹ️  Services already exist, nothing to seed")
        for service in created:
            print(f"   ✅ {service.id}: {service.name} ({service.category})")

        print(f"\n✅ Seeding completed! Added {len(created)} services")
    except Exception as e:
        print(f"❌ Error: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    seed_services()
