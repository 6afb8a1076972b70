"""
Enumeration types for BizTrackr.

All enums inherit from str to keep JSON serialization trivial and to let
storage round-trip them as plain VARCHAR values.
"""

from enum import Enum


class EmployeeRole(str, Enum):
    """Job roles an employee record may carry."""

    MANAGER = "Manager"
    DEVELOPER = "Developer"
    DESIGNER = "Designer"
    SALES_REPRESENTATIVE = "Sales Representative"
    MARKETING_SPECIALIST = "Marketing Specialist"
    ACCOUNTANT = "Accountant"
    HR_SPECIALIST = "HR Specialist"
    CUSTOMER_SUPPORT = "Customer Support"
    OPERATIONS = "Operations"
    INTERN = "Intern"
    CONSULTANT = "Consultant"
    OTHER = "Other"


class InventoryCategory(str, Enum):
    """Product categories for inventory items."""

    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    FOOD_BEVERAGES = "Food & Beverages"
    BOOKS = "Books"
    HOME_GARDEN = "Home & Garden"
    SPORTS_OUTDOORS = "Sports & Outdoors"
    HEALTH_BEAUTY = "Health & Beauty"
    AUTOMOTIVE = "Automotive"
    OFFICE_SUPPLIES = "Office Supplies"
    TOYS_GAMES = "Toys & Games"
    SERVICES = "Services"
    OTHER = "Other"


class InventoryUnit(str, Enum):
    """Units an inventory item is counted in."""

    PIECE = "piece"
    BOX = "box"
    KG = "kg"
    GRAM = "gram"
    LITER = "liter"
    METER = "meter"
    SERVICE = "service"
    HOUR = "hour"
    SET = "set"
    PAIR = "pair"
    DOZEN = "dozen"
    PACK = "pack"


class ActivityKind(str, Enum):
    """Source collection of an activity feed entry."""

    SALE = "sale"
    EXPENSE = "expense"
    EMPLOYEE = "employee"


class BucketPeriod(str, Enum):
    """Chart bucket granularity."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class HealthStatus(str, Enum):
    """
    Coarse business health label.

    Ordered from worst to best; see engine.health for the threshold rules.
    """

    CRITICAL = "CRITICAL"
    NEEDS_ATTENTION = "NEEDS ATTENTION"
    STABLE = "STABLE"
    HEALTHY = "HEALTHY"


class ExportType(str, Enum):
    """Collections selectable for spreadsheet export."""

    ALL = "all"
    SALES = "sales"
    EXPENSES = "expenses"
    EMPLOYEES = "employees"
    INVENTORY = "inventory"


class ExportFormat(str, Enum):
    """Spreadsheet output formats."""

    XLSX = "xlsx"
    CSV = "csv"


# Suggested expense labels; custom categories are accepted as free text.
EXPENSE_CATEGORIES = [
    "Rent/Lease",
    "Utilities",
    "Payroll",
    "Office Supplies",
    "Marketing & Advertising",
    "Insurance",
    "Professional Services",
    "Equipment",
    "Travel",
    "Meals & Entertainment",
    "Software & Subscriptions",
    "Maintenance & Repairs",
    "Shipping & Delivery",
    "Taxes & Licenses",
    "Banking & Finance",
    "Legal & Compliance",
    "Training & Education",
    "Telecommunications",
    "Fuel & Transportation",
    "Raw Materials",
]
