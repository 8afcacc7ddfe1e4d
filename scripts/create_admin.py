"""Create an admin user, or reset the password of an existing one.

Usage:
    DATABASE_URL=... python scripts/create_admin.py <email> <password>

An existing email is promoted to admin and gets the new password.
Apply schema.sql first; this script does not create tables.
"""

from __future__ import annotations

import os
import sys


def main() -> None:
    if len(sys.argv) < 3:
        print("Usage: python scripts/create_admin.py <email> <password>")
        print("Example: python scripts/create_admin.py admin@example.com mypassword")
        sys.exit(2)

    email = sys.argv[1]
    password = sys.argv[2]

    # Guard: require env vars
    if not os.environ.get("DATABASE_URL"):
        print("ERROR: DATABASE_URL not set")
        print("Optional: DB_PASSWORD (used when the DSN carries no password)")
        sys.exit(1)

    # Import after env validation so a missing DB doesn't blow up on import
    import psycopg2
    from psycopg2 import errorcodes

    from roomdesk.domain.accounts import normalize_email
    from roomdesk.infra.db import get_conn, txn
    from roomdesk.infra.passwords import hash_password
    from roomdesk.infra.repositories.users_repository import upsert_admin

    email = normalize_email(email)
    if "@" not in email or not password:
        print("ERROR: a valid email and a non-empty password are required")
        sys.exit(2)

    try:
        conn = get_conn()
    except psycopg2.OperationalError as e:
        print("ERROR: could not connect to the database. Check:")
        print("  - host and port in DATABASE_URL are correct")
        print("  - the database server is running and reachable")
        print("  - user and password are correct")
        print(f"  ({str(e).strip()})")
        sys.exit(1)

    try:
        print("Database connection successful")

        try:
            with txn(conn) as cur:
                cur.execute("SELECT 1 FROM users LIMIT 1")
        except psycopg2.Error as e:
            if e.pgcode == errorcodes.UNDEFINED_TABLE:
                print("ERROR: 'users' table not found")
                print('Apply the schema first: psql "$DATABASE_URL" -f schema.sql')
                sys.exit(1)
            raise

        with txn(conn) as cur:
            created = upsert_admin(cur, email=email, password_hash=hash_password(password))
    except psycopg2.Error as e:
        print(f"ERROR: could not create admin user: {e.pgerror or e}")
        sys.exit(1)
    finally:
        conn.close()

    if created:
        print(f"Admin user {email} created")
    else:
        print(f"Admin user {email} updated (password reset, role set to admin)")


if __name__ == "__main__":
    main()
