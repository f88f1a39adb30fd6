#!/usr/bin/env python3
"""Apply the meeting_knowledge migration against Postgres (DATABASE_URL)."""

import argparse
import os
import sys

import psycopg2

from app.core.config import settings

DEFAULT_MIGRATION = os.path.join(os.path.dirname(__file__), 'migrations', '001_meeting_knowledge.sql')


def main():
    parser = argparse.ArgumentParser(description="Apply a SQL migration")
    parser.add_argument("--file", default=DEFAULT_MIGRATION, help="Migration file to run")
    args = parser.parse_args()

    if not settings.DATABASE_URL:
        print("DATABASE_URL is not set")
        sys.exit(1)

    print(f"Reading migration from: {args.file}")
    with open(args.file, 'r') as f:
        sql = f.read()

    print(f"SQL length: {len(sql)} chars")

    print("Connecting to Postgres...")
    conn = psycopg2.connect(settings.DATABASE_URL)
    conn.autocommit = True

    try:
        cur = conn.cursor()
        print("Executing migration...")
        cur.execute(sql)
        print("✅ Migration executed successfully!")

        # Verify the table exists
        cur.execute(
            "SELECT column_name, data_type FROM information_schema.columns "
            "WHERE table_name = 'meeting_knowledge' ORDER BY ordinal_position"
        )
        print("\nmeeting_knowledge table columns:")
        for col_name, col_type in cur.fetchall():
            print(f"  - {col_name}: {col_type}")

        cur.execute(
            "SELECT proname FROM pg_proc WHERE proname IN "
            "('hybrid_search', 'get_knowledge_needing_embeddings')"
        )
        print("\nfunctions:")
        for (name,) in cur.fetchall():
            print(f"  - {name}")
        cur.close()
    finally:
        conn.close()

if __name__ == '__main__':
    main()
