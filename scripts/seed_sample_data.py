#!/usr/bin/env python3
"""
BizTrackr Sample Data Seeder

Fills the configured DuckDB file with a month of demo bookkeeping data for
one owner: daily sales and expenses, plus a small team and product range
when the owner has none yet.

Usage:
    python scripts/seed_sample_data.py --owner-id acme
    python scripts/seed_sample_data.py --owner-id acme --days 60 --seed 42
"""

import argparse
import random
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import structlog

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from biztrackr.config import get_settings
from biztrackr.models import (
    EmployeeRecord,
    EmployeeRole,
    ExpenseRecord,
    InventoryCategory,
    InventoryRecord,
    SaleRecord,
)
from biztrackr.storage import StorageBackend, create_storage
from biztrackr.utils.logging import configure_logging

logger = structlog.get_logger()


class SampleDataGenerator:
    """
    Generates demo records for one owner.

    Sales and expenses are random per day; employees and inventory are a
    fixed starter set written only when the owner has none.
    """

    SALE_ITEMS = ["Product A", "Product B", "Product C", "Service X", "Service Y"]

    EXPENSE_DESCRIPTIONS = {
        "Office Supplies": ["Printer paper", "Pens and pencils", "Folders", "Desk supplies"],
        "Marketing": ["Social media ads", "Print materials", "Website hosting", "SEO tools"],
        "Utilities": ["Electricity bill", "Internet service", "Phone service", "Water bill"],
        "Software": ["License renewal", "Cloud storage", "Development tools", "Design software"],
        "Travel": ["Client meeting", "Conference attendance", "Business trip", "Transportation"],
    }

    EMPLOYEES = [
        ("John Smith", EmployeeRole.MANAGER, 5000),
        ("Sarah Johnson", EmployeeRole.DEVELOPER, 4000),
        ("Mike Wilson", EmployeeRole.DESIGNER, 3500),
        ("Lisa Brown", EmployeeRole.SALES_REPRESENTATIVE, 3000),
    ]

    # name, category, stock, cost, price, reorder threshold
    PRODUCTS = [
        ("Laptop Computer", InventoryCategory.ELECTRONICS, 15, 800, 1200, 5),
        ("Office Chair", InventoryCategory.OFFICE_SUPPLIES, 25, 150, 250, 10),
        ("Smartphone", InventoryCategory.ELECTRONICS, 8, 400, 600, 5),
        ("Desk Lamp", InventoryCategory.OFFICE_SUPPLIES, 30, 25, 45, 15),
        ("Software License", InventoryCategory.SERVICES, 50, 100, 150, 20),
    ]

    def __init__(self, owner_id: str, today: date, seed: Optional[int] = None):
        self.owner_id = owner_id
        self.today = today
        self.rng = random.Random(seed)

    def sales(self, days: int) -> list[SaleRecord]:
        records = []
        for offset in range(days - 1, -1, -1):
            day = self.today - timedelta(days=offset)
            for _ in range(self.rng.randint(1, 5)):
                records.append(
                    SaleRecord(
                        owner_id=self.owner_id,
                        item_name=self.rng.choice(self.SALE_ITEMS),
                        unit_amount=self.rng.randint(50, 549),
                        quantity=self.rng.randint(1, 3),
                        date=day,
                    )
                )
        return records

    def expenses(self, days: int) -> list[ExpenseRecord]:
        records = []
        for offset in range(days - 1, -1, -1):
            day = self.today - timedelta(days=offset)
            for _ in range(self.rng.randint(0, 3)):
                category = self.rng.choice(list(self.EXPENSE_DESCRIPTIONS))
                records.append(
                    ExpenseRecord(
                        owner_id=self.owner_id,
                        category=category,
                        description=self.rng.choice(self.EXPENSE_DESCRIPTIONS[category]),
                        amount=self.rng.randint(20, 219),
                        date=day,
                    )
                )
        return records

    def employees(self) -> list[EmployeeRecord]:
        return [
            EmployeeRecord(
                owner_id=self.owner_id,
                name=name,
                role=role,
                monthly_salary=salary,
                hire_date=self.today - timedelta(days=self.rng.randint(0, 364)),
            )
            for name, role, salary in self.EMPLOYEES
        ]

    def inventory(self) -> list[InventoryRecord]:
        return [
            InventoryRecord(
                owner_id=self.owner_id,
                product_name=name,
                category=category,
                stock_count=stock,
                cost_price=cost,
                selling_price=price,
                reorder_threshold=threshold,
                description=f"High-quality {name.lower()}",
            )
            for name, category, stock, cost, price, threshold in self.PRODUCTS
        ]


def seed(storage: StorageBackend, generator: SampleDataGenerator, days: int) -> dict[str, int]:
    """Write generated records and return how many of each were created."""
    owner_id = generator.owner_id
    counts = {"sales": 0, "expenses": 0, "employees": 0, "inventory": 0}

    for sale in generator.sales(days):
        storage.write_sale(sale)
        counts["sales"] += 1

    for expense in generator.expenses(days):
        storage.write_expense(expense)
        counts["expenses"] += 1

    if not storage.read_employees(owner_id):
        for employee in generator.employees():
            storage.write_employee(employee)
            counts["employees"] += 1

    if not storage.read_inventory(owner_id):
        for item in generator.inventory():
            storage.write_inventory_item(item)
            counts["inventory"] += 1

    logger.info("sample_data_seeded", owner_id=owner_id, days=days, **counts)
    return counts


def main():
    parser = argparse.ArgumentParser(description="Seed BizTrackr with demo bookkeeping data")
    parser.add_argument("--owner-id", required=True, help="Owner to create records for")
    parser.add_argument("--days", type=int, default=30, help="Days of sales/expenses to generate")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data")
    args = parser.parse_args()

    configure_logging()
    settings = get_settings()
    storage = create_storage(settings)

    generator = SampleDataGenerator(args.owner_id, date.today(), seed=args.seed)
    try:
        counts = seed(storage, generator, args.days)
    finally:
        storage.close()

    print("\n" + "=" * 60)
    print(f"Sample data written to {settings.db_path}")
    print("=" * 60)
    for collection, count in counts.items():
        print(f"  {collection:<10} {count}")
    print()


if __name__ == "__main__":
    main()
