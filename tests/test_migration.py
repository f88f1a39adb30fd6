"""
Search contract of the hybrid_search SQL function.

The static tests read the migration text. The database tests run it
against a real pgvector Postgres inside a rolled-back transaction and are
skipped unless DATABASE_URL is set.
"""
import os
import re
from pathlib import Path

import pytest

MIGRATION = Path(__file__).resolve().parent.parent / "migrations" / "001_meeting_knowledge.sql"


def _function_body(name):
    sql = MIGRATION.read_text()
    match = re.search(
        rf"CREATE OR REPLACE FUNCTION {name}\(.*?AS \$\$(.*?)\$\$;", sql, re.DOTALL
    )
    assert match, f"{name} not found in migration"
    return " ".join(match.group(1).split())


# ==================== STATIC CONTRACT ====================

def test_similarity_is_one_minus_cosine_distance():
    body = _function_body("hybrid_search")
    assert "(1 - (mk.embedding <=> query_embedding))::float AS similarity" in body


def test_threshold_qualifies_on_distance_or_keyword():
    body = _function_body("hybrid_search")
    assert (
        "(mk.embedding <=> query_embedding) < (1 - match_threshold) "
        "OR (mk.keywords IS NOT NULL AND query_text <% ANY(mk.keywords))"
    ) in body
    assert "> (1 - match_threshold)" not in body
    assert "< match_threshold" not in body


def test_ordering_and_limit():
    body = _function_body("hybrid_search")
    assert (
        "ORDER BY similarity DESC, keyword_match DESC NULLS LAST, mk.created_at DESC "
        "LIMIT match_count"
    ) in body


def test_scope_filter_is_optional():
    body = _function_body("hybrid_search")
    assert "(target_scope_id IS NULL OR mk.meeting_id = target_scope_id)" in body


def test_pending_items_are_unembedded_newest_first():
    body = _function_body("get_knowledge_needing_embeddings")
    assert "WHERE mk.embedding IS NULL ORDER BY mk.created_at DESC LIMIT batch_size" in body


# ==================== AGAINST POSTGRES ====================

DATABASE_URL = os.getenv("DATABASE_URL")


def _vector(x, y):
    return "[" + ",".join(str(v) for v in [x, y] + [0] * 1534) + "]"


@pytest.fixture
def cursor():
    if not DATABASE_URL:
        pytest.skip("DATABASE_URL not set")
    psycopg2 = pytest.importorskip("psycopg2")

    conn = psycopg2.connect(DATABASE_URL)
    try:
        cur = conn.cursor()
        cur.execute("CREATE SCHEMA knowledge_test")
        cur.execute("SET LOCAL search_path TO knowledge_test, public")
        cur.execute(MIGRATION.read_text())
        cur.execute("SET LOCAL enable_indexscan = off")

        rows = [
            ("exact", "meeting-1", _vector(1, 0), None, "2026-10-01T09:00:00Z"),
            ("near-old", "meeting-1", _vector(0.8, 0.6), None, "2026-10-01T09:01:00Z"),
            ("near-new", "meeting-2", _vector(0.8, 0.6), None, "2026-10-01T09:02:00Z"),
            ("orthogonal", "meeting-1", _vector(0, 1), ["budget"], "2026-10-01T09:03:00Z"),
        ]
        for content, meeting_id, embedding, keywords, created_at in rows:
            cur.execute(
                "INSERT INTO meeting_knowledge (meeting_id, content, embedding, keywords, created_at) "
                "VALUES (%s, %s, %s::vector, %s, %s)",
                (meeting_id, content, embedding, keywords, created_at),
            )
        yield cur
    finally:
        conn.rollback()
        conn.close()


def _search(cur, query_text, threshold, scope_id=None):
    cur.execute(
        "SELECT content, similarity, keyword_match FROM hybrid_search(%s::vector, %s, %s, %s, %s)",
        (_vector(1, 0), query_text, scope_id, threshold, 10),
    )
    return cur.fetchall()


def test_db_similarity_and_threshold(cursor):
    rows = _search(cursor, "zzzz", 0.7)

    assert [row[0] for row in rows] == ["exact", "near-new", "near-old"]
    assert rows[0][1] == pytest.approx(1.0, abs=1e-4)
    assert rows[1][1] == pytest.approx(0.8, abs=1e-4)


def test_db_threshold_excludes_lower_similarity(cursor):
    assert [row[0] for row in _search(cursor, "zzzz", 0.9)] == ["exact"]


def test_db_keyword_match_qualifies_below_threshold(cursor):
    rows = _search(cursor, "budget", 0.9)

    assert [row[0] for row in rows] == ["exact", "orthogonal"]
    assert rows[1][1] == pytest.approx(0.0, abs=1e-4)
    assert rows[1][2] is True


def test_db_scope_restricts_meeting(cursor):
    assert [row[0] for row in _search(cursor, "zzzz", 0.7, "meeting-2")] == ["near-new"]
