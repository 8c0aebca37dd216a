#!/usr/bin/env python3
"""
Initialize the default admin account.
Run with: python3 init_admin.py
"""
import os

from medibook import create_app
from medibook.extensions import db
from medibook.models import User

DEFAULT_ADMIN = {
    'email': os.getenv('ADMIN_EMAIL', 'admin@medibook.local'),
    'password': os.getenv('ADMIN_PASSWORD', 'admin123'),
    'name': 'System Admin',
}


def create_admin():
    """Create the admin user if it does not exist yet"""
    app = create_app()

    with app.app_context():
        db.create_all()

        print("=" * 60)
        print("Initializing Admin User")
        print("=" * 60)

        email = DEFAULT_ADMIN['email']
        if User.query.filter_by(email=email).first():
            print(f"  - Admin '{email}' already exists (skipping)")
            return

        admin = User(email=email, name=DEFAULT_ADMIN['name'], role='admin')
        admin.set_password(DEFAULT_ADMIN['password'])
        db.session.add(admin)
        db.session.commit()

        print(f"  ✓ Created: {email} - Password: {DEFAULT_ADMIN['password']}")
        print("\n⚠️  IMPORTANT: Change the password after first login!")


if __name__ == '__main__':
    create_admin()
