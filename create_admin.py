import asyncio
from getpass import getpass
from sqlalchemy.future import select
from lms.database import AsyncSessionLocal
from lms.models import Franchise, User, UserRole
from lms.auth.password_security import hash_password


async def create_admin_interactive():
    """
    Interactively create an admin. Without a franchise name the admin is a
    super admin and sees every franchise.
    """
    email = input("Enter admin email: ").strip()
    name = input("Enter admin name: ").strip() or email
    franchise_name = input("Franchise name (leave empty for super admin): ").strip()
    password = getpass("Enter admin password: ").strip()
    password_confirm = getpass("Confirm password: ").strip()

    if password != password_confirm:
        print("Passwords do not match. Exiting.")
        return

    async with AsyncSessionLocal() as session:
        existing_admin = await session.scalar(select(User).where(User.email == email))
        if existing_admin:
            print(f"User with email {email} already exists.")
            return

        franchise = None
        if franchise_name:
            franchise = await session.scalar(select(Franchise).where(Franchise.name == franchise_name))
            if not franchise:
                franchise = Franchise(name=franchise_name)
                session.add(franchise)
                await session.flush()

        admin_user = User(
            role=UserRole.ADMIN,
            email=email,
            name=name,
            password_hash=hash_password(password),
            super_admin=franchise is None,
            franchise_id=franchise.id if franchise else None,
        )
        session.add(admin_user)
        await session.commit()
        print(f"Admin created successfully: {email}")


if __name__ == "__main__":
    asyncio.run(create_admin_interactive())
