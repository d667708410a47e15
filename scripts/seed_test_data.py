"""
Seed the backing store with sample QC records (documents, inspections,
deficiencies and notifications).

Usage:
  python scripts/seed_test_data.py [--user-id USER]

This script is idempotent: rows are matched on title/description and only
inserted when missing.
"""
import argparse
import os
import sys
from datetime import datetime, timedelta, timezone

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables before the settings module reads them
from dotenv import load_dotenv

load_dotenv()

from qctrack.db import Base, SessionLocal, engine  # noqa: E402
from qctrack.models.models import DeficiencyRow, DocumentRow, InspectionRow, NotificationRow  # noqa: E402


def ensure_document(session, title: str, **kwargs) -> DocumentRow:
    row = session.query(DocumentRow).filter(DocumentRow.title == title).first()
    if row:
        return row
    row = DocumentRow(title=title, **kwargs)
    session.add(row)
    session.flush()
    return row


def ensure_inspection(session, title: str, job_number: str, **kwargs) -> InspectionRow:
    row = (
        session.query(InspectionRow)
        .filter(InspectionRow.title == title, InspectionRow.job_number == job_number)
        .first()
    )
    if row:
        return row
    row = InspectionRow(title=title, job_number=job_number, **kwargs)
    session.add(row)
    session.flush()
    return row


def ensure_deficiency(session, description: str, **kwargs) -> DeficiencyRow:
    row = session.query(DeficiencyRow).filter(DeficiencyRow.description == description).first()
    if row:
        return row
    row = DeficiencyRow(description=description, **kwargs)
    session.add(row)
    session.flush()
    return row


def ensure_notification(session, user_id: str, title: str, **kwargs) -> NotificationRow:
    row = (
        session.query(NotificationRow)
        .filter(NotificationRow.user_id == user_id, NotificationRow.title == title)
        .first()
    )
    if row:
        return row
    row = NotificationRow(user_id=user_id, title=title, **kwargs)
    session.add(row)
    session.flush()
    return row


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed sample QC records")
    parser.add_argument("--user-id", default="demo.inspector", help="Recipient of the sample notifications")
    args = parser.parse_args()

    # Ensure tables exist (safe for SQLite dev)
    Base.metadata.create_all(bind=engine)

    now = datetime.now(timezone.utc)
    session = SessionLocal()
    try:
        ensure_document(
            session,
            "Foundation Specifications",
            type="spec",
            content="Minimum concrete strength: 3000 PSI\nRebar spacing: 12 inches",
            status="active",
            metadata_json={"author": "system", "tags": ["foundation", "concrete"], "job_numbers": ["DEFAULT"]},
            revision_history=[{"version": 1, "author": "system", "changes": "Initial creation"}],
            created_by="system",
        )
        ensure_document(
            session,
            "Building Code 2024",
            type="code",
            content="Section 1.1: Foundation requirements...",
            status="active",
            metadata_json={"author": "system", "tags": ["code", "requirements"], "job_numbers": ["DEFAULT"]},
            revision_history=[{"version": 1, "author": "system", "changes": "Initial creation"}],
            created_by="system",
        )

        footing = ensure_inspection(
            session,
            "Footing rebar inspection",
            "J-1001",
            date=now + timedelta(days=1),
            location="Zone A",
            priority="high",
            assigned_to=args.user_id,
            checklist=[{"description": "Verify foundation depth meets specifications", "required": True}],
        )
        ensure_inspection(
            session,
            "Column weld visual",
            "J-1001",
            date=now + timedelta(days=3),
            location="Level 2",
            priority="medium",
        )

        ensure_deficiency(
            session,
            "Crack in beam",
            severity="high",
            location="Zone A",
            inspection_id=footing.id,
            assigned_to=args.user_id,
            due_date=now + timedelta(days=7),
        )
        ensure_deficiency(
            session,
            "Honeycombing at slab edge",
            severity="medium",
            location="Level 1",
        )

        ensure_notification(
            session,
            args.user_id,
            "New Inspection Scheduled",
            message="Footing rebar inspection scheduled (Zone A)",
            type="inspection",
            severity="critical",
            related_id=footing.id,
        )
        ensure_notification(
            session,
            args.user_id,
            "New Deficiency",
            message="New high deficiency reported at Zone A",
            type="deficiency",
            severity="critical",
        )

        # Commit all changes
        session.commit()
        print("Seed completed: documents, inspections, deficiencies and notifications upserted.")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
