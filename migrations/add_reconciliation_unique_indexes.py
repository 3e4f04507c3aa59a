"""
Add unique indexes backing the one-row-per-appointment rules

Migration to add:
- sessions (project_id, appointment_id) unique
- transactions (appointment_id) unique

Confirmation looks up before it writes, which keeps retries from duplicating rows but
cannot stop two simultaneous confirmations of the same appointment from both inserting.
These indexes close that gap on engines that enforce them. Rows with a NULL
appointment_id are unaffected.

Existing duplicates are reported and the migration stops without changing anything.

Run with: python migrations/add_reconciliation_unique_indexes.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text  # noqa: E402

from studiodesk.database import engine  # noqa: E402

DUPLICATE_CHECKS = {
    "sessions": """
        SELECT project_id, appointment_id, COUNT(*)
        FROM sessions
        WHERE appointment_id IS NOT NULL
        GROUP BY project_id, appointment_id
        HAVING COUNT(*) > 1
    """,
    "transactions": """
        SELECT appointment_id, COUNT(*)
        FROM transactions
        WHERE appointment_id IS NOT NULL
        GROUP BY appointment_id
        HAVING COUNT(*) > 1
    """,
}

INDEXES = {
    "uq_sessions_project_appointment": """
        CREATE UNIQUE INDEX IF NOT EXISTS uq_sessions_project_appointment
        ON sessions (project_id, appointment_id)
    """,
    "uq_transactions_appointment": """
        CREATE UNIQUE INDEX IF NOT EXISTS uq_transactions_appointment
        ON transactions (appointment_id)
    """,
}


def find_duplicates(conn) -> dict:
    duplicates = {}
    for table, query in DUPLICATE_CHECKS.items():
        rows = conn.execute(text(query)).fetchall()
        if rows:
            duplicates[table] = rows
    return duplicates


def upgrade():
    """Add unique indexes if the data allows it"""
    with engine.connect() as conn:
        duplicates = find_duplicates(conn)
        if duplicates:
            for table, rows in duplicates.items():
                print(f"❌ {table}: {len(rows)} appointment(s) with more than one row")
                for row in rows[:10]:
                    print(f"   {tuple(row)}")
            print("Merge the duplicate rows, then run this migration again.")
            return False

        for name, statement in INDEXES.items():
            conn.execute(text(statement))
            print(f"✅ Ensured index {name}")

        conn.commit()
        print("✅ Migration completed successfully!")
        return True


def downgrade():
    """Drop the unique indexes"""
    with engine.connect() as conn:
        for name in INDEXES:
            conn.execute(text(f"DROP INDEX IF EXISTS {name}"))
            print(f"✅ Dropped index {name}")
        conn.commit()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "downgrade":
        downgrade()
    else:
        sys.exit(0 if upgrade() else 1)
