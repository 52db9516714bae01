#!/usr/bin/env python3
"""
Bootstrap the back office: create the first super admin, or list admins.

Further admins are created through the admin management API by a super admin.
"""

import getpass

from sqlalchemy.exc import SQLAlchemyError

from pharmasave import crud
from pharmasave.db.session import SessionLocal
from pharmasave.models import AdminRole


def create_super_admin():
    """Create a super admin interactively"""
    print("👤 Creating Super Admin")
    print("=" * 50)

    db = SessionLocal()
    try:
        existing_admins = crud.admin.get_all(db)
        if existing_admins:
            print(f"✅ Found {len(existing_admins)} existing admin users")
            response = input("Do you want to create another super admin? (y/N): ")
            if response.lower() != 'y':
                print("Skipping admin user creation")
                return

        email = input("Email: ").strip().lower()
        if not email:
            print("❌ Email is required")
            return
        first_name = input("First Name: ").strip()
        last_name = input("Last Name (optional): ").strip()
        password = getpass.getpass("Password: ")
        if len(password) < 8:
            print("❌ Password must be at least 8 characters")
            return
        if password != getpass.getpass("Confirm Password: "):
            print("❌ Passwords do not match")
            return

        if crud.auth_account.get_by_email(db, email=email):
            print(f"❌ An account with email {email} already exists")
            return

        account = crud.auth_account.create(
            db,
            email=email,
            password=password,
            user_metadata={"full_name": f"{first_name} {last_name}".strip(), "admin": True},
            confirmed=True,
        )
        admin = crud.admin.create(
            db,
            auth_id=account.id,
            email=email,
            fname=first_name or None,
            lname=last_name or None,
            role=AdminRole.SUPER_ADMIN,
        )

        print("✅ Super admin created successfully!")
        print(f"   ID: {admin.display_id} ({admin.id})")
        print(f"   Email: {admin.email}")
        print(f"   Full Name: {admin.full_name}")
    except SQLAlchemyError as e:
        print(f"❌ Error creating admin user: {e}")
        db.rollback()
    finally:
        db.close()


def list_admin_users():
    """List existing admin users"""
    print("👥 Existing Admin Users")
    print("=" * 50)

    db = SessionLocal()
    try:
        admins = crud.admin.get_all(db)
        if not admins:
            print("❌ No admin users found")
            return
        for admin in admins:
            print(f"  {admin.display_id}  {admin.email}  {admin.full_name}")
            print(f"  Role: {admin.role}  Active: {admin.is_active}  Created: {admin.created_at}")
            print("-" * 30)
    finally:
        db.close()


def main():
    while True:
        print("\nChoose an option:")
        print("1. List existing admin users")
        print("2. Create super admin")
        print("3. Exit")

        choice = input("\nEnter your choice (1-3): ").strip()

        if choice == '1':
            list_admin_users()
        elif choice == '2':
            create_super_admin()
        elif choice == '3':
            print("Goodbye!")
            break
        else:
            print("Invalid choice. Please enter 1, 2, or 3.")


if __name__ == "__main__":
    main()
