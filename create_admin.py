"""
Bootstrap-Tool: Firma mit erstem Admin-Benutzer anlegen.

Verwendung:
  python create_admin.py <firmenname> <email> <passwort> [zeitzone]

Beispiel:
  python create_admin.py "Bakery Noord" admin@bakery.nl geheimesPasswort123 Europe/Amsterdam
"""
import asyncio
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select

from shiftkeeper.core.config import settings
from shiftkeeper.core.database import AsyncSessionLocal, create_tables
from shiftkeeper.core.security import hash_password
from shiftkeeper.models.company import Company
from shiftkeeper.models.user import User


async def main(company_name: str, email: str, password: str, tz_name: str) -> None:
    if len(password) < 8:
        print("Fehler: Passwort muss mindestens 8 Zeichen lang sein.")
        sys.exit(1)
    try:
        ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        print(f"Fehler: Unbekannte Zeitzone '{tz_name}'.")
        sys.exit(1)

    await create_tables()

    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            print(f"Benutzer mit E-Mail '{email}' existiert bereits.")
            sys.exit(0)

        company = Company(name=company_name, timezone=tz_name)
        db.add(company)
        await db.flush()

        user = User(
            company_id=company.id,
            email=email,
            hashed_password=hash_password(password),
            role="admin",
        )
        db.add(user)
        await db.commit()
        print(f"✓ Firma '{company_name}' (ID: {company.id}) mit Admin '{email}' angelegt")


if __name__ == "__main__":
    if len(sys.argv) not in (4, 5):
        print("Verwendung: python create_admin.py <firmenname> <email> <passwort> [zeitzone]")
        sys.exit(1)

    tz_arg = sys.argv[4] if len(sys.argv) == 5 else settings.DEFAULT_TIMEZONE
    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3], tz_arg))
