"""
Migration: add results publication to quizzes.

- quizzes: add results_published (BOOLEAN, default 0).
- quizzes: add publish_at (DATETIME, nullable), backfilled from created_at
  for quizzes that are already published.
"""

import sqlite3
import os


def _add_column(cursor, table: str, ddl: str, name: str) -> bool:
    try:
        cursor.execute(f"ALTER TABLE {table} ADD COLUMN {ddl}")
        print(f"{table}: added {name}")
        return True
    except sqlite3.OperationalError as e:
        if "duplicate column" in str(e).lower():
            print(f"{table}.{name} already exists. Skipping.")
            return False
        raise


def run_migration():
    db_path = os.getenv("DATABASE_URL", "sqlite:///./lms.db").replace("sqlite:///", "")
    conn = None
    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='quizzes'")
        if not cursor.fetchone():
            print("quizzes table not found. Skipping.")
            return

        _add_column(cursor, "quizzes", "results_published BOOLEAN NOT NULL DEFAULT 0", "results_published")
        if _add_column(cursor, "quizzes", "publish_at DATETIME", "publish_at"):
            cursor.execute("UPDATE quizzes SET publish_at = created_at WHERE published = 1 AND publish_at IS NULL")
            print(f"quizzes: backfilled publish_at for {cursor.rowcount} published quizzes")

        conn.commit()
        print("✓ Migration add_quiz_results_published completed successfully!")

    except sqlite3.Error as e:
        print(f"Error during migration: {e}")
        if conn:
            conn.rollback()
    finally:
        if conn:
            conn.close()


if __name__ == "__main__":
    run_migration()
