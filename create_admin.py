#!/usr/bin/env python3
"""
Promote an existing user to admin, or create a new admin account
Usage: python create_admin.py <username> [email] [password]
"""

import sys

from handypro.database import Base, SessionLocal, engine
from handypro.models import User
from handypro.security_utils import hash_password
from handypro.shared.validators import validate_password, validate_required_email


def create_admin(username: str, email: str = None, password: str = None):
    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.username == username).first()
        if user:
            user.role = "admin"
            db.commit()
            print(f"✅ {username} is now an admin")
            return

        if not email or not password:
            print(f"❌ User {username} not found - pass email and password to create it")
            sys.exit(1)

        user = User(
            username=username,
            email=validate_required_email(email),
            hashed_password=hash_password(validate_password(password)),
            role="admin",
        )
        db.add(user)
        db.commit()
        print(f"✅ Admin {username} created (id {user.id})")
    except ValueError as e:
        print(f"❌ Invalid input: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    create_admin(*sys.argv[1:4])
