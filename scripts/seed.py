"""
Seed a starter catalogue of published smells.

Safe to run repeatedly: smells are matched on title and existing rows are left alone.
"""
import argparse
import asyncio
import os
import sys

# Add the parent directory to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy import select

from core.logging import setup_logging, get_logger
from db_config import AsyncSessionLocal
from models.models import Smell, SmellCategoryEnum, DifficultyLevelEnum
from services.identity_service import IdentityService

setup_logging()
logger = get_logger("seed")


STARTER_SMELLS = [
    {
        "title": "God Function",
        "category": SmellCategoryEnum.CODE_SMELL,
        "description": "A function that does too much. It mixes validation, persistence and "
                       "notification, so every change risks breaking an unrelated concern.",
        "bad_code": (
            "def register(form):\n"
            "    if '@' not in form['email']:\n"
            "        raise ValueError('bad email')\n"
            "    db.insert('users', form)\n"
            "    mailer.send(form['email'], 'Welcome!')\n"
            "    audit.write('registered', form['email'])\n"
        ),
        "good_code": (
            "def register(form):\n"
            "    validate_email(form['email'])\n"
            "    user = save_user(form)\n"
            "    send_welcome(user)\n"
            "    record_registration(user)\n"
        ),
        "test_hint": "Test each extracted function on its own and mock the collaborators.",
        "difficulty": DifficultyLevelEnum.MEDIUM,
        "tags": "functions,complexity,refactoring,single-responsibility",
    },
    {
        "title": "Magic Numbers",
        "category": SmellCategoryEnum.READABILITY,
        "description": "Unexplained numeric literals hide intent and make coordinated changes error-prone.",
        "bad_code": (
            "def price(total):\n"
            "    if total > 100:\n"
            "        return total * 0.9\n"
            "    return total\n"
        ),
        "good_code": (
            "DISCOUNT_THRESHOLD = 100\n"
            "DISCOUNT_RATE = 0.10\n\n"
            "def price(total):\n"
            "    if total > DISCOUNT_THRESHOLD:\n"
            "        return total * (1 - DISCOUNT_RATE)\n"
            "    return total\n"
        ),
        "test_hint": "Exercise values on both sides of each named threshold.",
        "difficulty": DifficultyLevelEnum.BEGINNER,
        "tags": "constants,readability,maintenance,magic-numbers",
    },
    {
        "title": "Duplicate Logic",
        "category": SmellCategoryEnum.MAINTAINABILITY,
        "description": "The same rule copied into several places drifts apart as each copy is edited separately.",
        "bad_code": (
            "def create_user(email):\n"
            "    if not email or '@' not in email:\n"
            "        raise ValueError('invalid')\n\n"
            "def invite_user(email):\n"
            "    if not email or '@' not in email:\n"
            "        raise ValueError('invalid')\n"
        ),
        "good_code": (
            "def require_email(email):\n"
            "    if not email or '@' not in email:\n"
            "        raise ValueError('invalid')\n\n"
            "def create_user(email):\n"
            "    require_email(email)\n\n"
            "def invite_user(email):\n"
            "    require_email(email)\n"
        ),
        "test_hint": "Cover the shared validator with edge cases such as empty strings.",
        "difficulty": DifficultyLevelEnum.EASY,
        "tags": "duplication,reusability,dry,validation",
    },
    {
        "title": "Long Parameter List",
        "category": SmellCategoryEnum.CODE_SMELL,
        "description": "Functions with many positional parameters are hard to call correctly and to extend.",
        "bad_code": (
            "def book(name, email, phone, street, city, zip_code, date, seats):\n"
            "    ...\n"
        ),
        "good_code": (
            "@dataclass\n"
            "class Booking:\n"
            "    contact: Contact\n"
            "    address: Address\n"
            "    date: date\n"
            "    seats: int\n\n"
            "def book(booking: Booking):\n"
            "    ...\n"
        ),
        "test_hint": "Build parameter objects with factories so each test states only what it needs.",
        "difficulty": DifficultyLevelEnum.MEDIUM,
        "tags": "functions,parameters,maintainability,refactoring",
    },
    {
        "title": "Feature Envy",
        "category": SmellCategoryEnum.DESIGN_PATTERN,
        "description": "A method more interested in another object's data than its own belongs on that object.",
        "bad_code": (
            "def shipping_cost(order):\n"
            "    c = order.customer\n"
            "    return 0 if c.is_premium and c.country == 'US' else 5\n"
        ),
        "good_code": (
            "class Customer:\n"
            "    def ships_free(self):\n"
            "        return self.is_premium and self.country == 'US'\n\n"
            "def shipping_cost(order):\n"
            "    return 0 if order.customer.ships_free() else 5\n"
        ),
        "test_hint": "Test the moved behaviour directly on the class that now owns it.",
        "difficulty": DifficultyLevelEnum.HARD,
        "tags": "coupling,encapsulation,object-orientation",
    },
]


async def seed_smells(session) -> int:
    """Insert missing starter smells and return how many were created."""
    existing = set((await session.execute(select(Smell.title))).scalars().all())
    created = 0
    for data in STARTER_SMELLS:
        if data["title"] in existing:
            logger.debug("Smell already present", title=data["title"])
            continue
        session.add(Smell(is_published=True, **data))
        created += 1
    await session.commit()
    return created


async def run(with_admin: bool) -> None:
    async with AsyncSessionLocal() as session:
        if with_admin:
            await IdentityService(session).ensure_default_admin()
        created = await seed_smells(session)
    logger.info("Seeding completed", created=created, total=len(STARTER_SMELLS))


def main():
    parser = argparse.ArgumentParser(description="Seed the smell catalogue")
    parser.add_argument(
        "--with-admin",
        action="store_true",
        help="Also provision DEFAULT_ADMIN_EMAIL as an admin account",
    )
    args = parser.parse_args()
    asyncio.run(run(args.with_admin))


if __name__ == "__main__":
    main()
