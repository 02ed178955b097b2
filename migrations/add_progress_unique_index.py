"""
Migration: enforce one progress row per (user, course).

Older databases could hold duplicate progress rows created by concurrent first
visits. For each duplicate group the oldest row is kept; completions and quiz
attempts of the other rows are moved onto it (completions de-duplicated),
then the extra rows are dropped and the unique index is created.
"""

import sqlite3
import os


def run_migration():
    db_path = os.getenv("DATABASE_URL", "sqlite:///./lms.db").replace("sqlite:///", "")
    conn = None
    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='progress'")
        if not cursor.fetchone():
            print("progress table not found. Skipping.")
            return

        cursor.execute(
            """
            SELECT user_id, course_id FROM progress
            GROUP BY user_id, course_id HAVING COUNT(*) > 1
            """
        )
        groups = cursor.fetchall()
        for user_id, course_id in groups:
            cursor.execute(
                "SELECT id FROM progress WHERE user_id = ? AND course_id = ? ORDER BY created_at ASC",
                (user_id, course_id),
            )
            ids = [r[0] for r in cursor.fetchall()]
            keep, extras = ids[0], ids[1:]
            for extra in extras:
                cursor.execute(
                    """
                    INSERT OR IGNORE INTO progress_materials (progress_id, material_id, completed_at)
                    SELECT ?, material_id, completed_at FROM progress_materials WHERE progress_id = ?
                    """,
                    (keep, extra),
                )
                cursor.execute("DELETE FROM progress_materials WHERE progress_id = ?", (extra,))
                cursor.execute("UPDATE quiz_attempts SET progress_id = ? WHERE progress_id = ?", (keep, extra))
                cursor.execute("DELETE FROM progress WHERE id = ?", (extra,))
            print(f"progress: merged {len(extras)} duplicate row(s) for user_id={user_id} course_id={course_id}")

        cursor.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_progress_user_course ON progress (user_id, course_id)"
        )
        print("progress: unique index on (user_id, course_id) ensured")

        conn.commit()
        print("✓ Migration add_progress_unique_index completed successfully!")

    except sqlite3.Error as e:
        print(f"Error during migration: {e}")
        if conn:
            conn.rollback()
    finally:
        if conn:
            conn.close()


if __name__ == "__main__":
    run_migration()
