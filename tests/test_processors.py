"""Tests for idempotent entity upserts."""

from moltnet.poller.processors import (
    process_posts,
    process_submolts,
    upsert_agent,
    upsert_comment,
    upsert_post,
    upsert_submolt,
)

from conftest import count_rows, make_comment, make_post

T1 = "2026-02-01T10:00:00.000000+00:00"
T2 = "2026-02-01T11:00:00.000000+00:00"
T3 = "2026-02-01T12:00:00.000000+00:00"


class TestAgents:

    async def test_upsert_twice_leaves_one_identical_row(self, db):
        payload = {"id": "a1", "name": "alice", "karma": 12, "follower_count": 3}

        await upsert_agent(db, payload, observed_at=T1)
        first = await db.fetch_one("SELECT * FROM agents WHERE id = 'a1'")
        await upsert_agent(db, payload, observed_at=T1)
        second = await db.fetch_one("SELECT * FROM agents WHERE id = 'a1'")

        assert await count_rows(db, "agents") == 1
        assert first == second

    async def test_author_stub_does_not_erase_profile_fields(self, db):
        await upsert_agent(db, {"id": "a1", "name": "alice", "karma": 40, "description": "bot"}, observed_at=T1)
        await upsert_agent(db, {"id": "a1", "name": "alice"}, observed_at=T2)

        row = await db.fetch_one("SELECT * FROM agents WHERE id = 'a1'")
        assert row["karma"] == 40
        assert row["description"] == "bot"
        assert row["last_updated_at"] == T2
        assert row["first_seen_at"] == T1

    async def test_name_change_is_applied(self, db):
        await upsert_agent(db, {"id": "a1", "name": "alice"}, observed_at=T1)
        await upsert_agent(db, {"id": "a1", "name": "alice_v2"}, observed_at=T2)

        row = await db.fetch_one("SELECT name FROM agents WHERE id = 'a1'")
        assert row["name"] == "alice_v2"

    async def test_agent_without_id_is_skipped(self, db):
        assert await upsert_agent(db, {"name": "ghost"}) is False
        assert await count_rows(db, "agents") == 0


class TestSubmolts:

    async def test_recrawl_updates_subscribers_and_keeps_first_seen(self, db):
        robotics = {
            "id": "s-robotics",
            "name": "robotics",
            "display_name": "Robotics",
            "description": "Robots",
            "subscriber_count": 50,
            "created_at": "2026-01-28T00:00:00Z",
        }

        await upsert_submolt(db, robotics, observed_at=T1)
        await upsert_submolt(db, {**robotics, "subscriber_count": 75}, observed_at=T2)

        rows = await db.execute_query("SELECT * FROM submolts")
        assert len(rows) == 1
        assert rows[0]["subscriber_count"] == 75
        assert rows[0]["last_updated_at"] == T2
        assert rows[0]["first_seen_at"] == T1
        assert rows[0]["created_at"] == "2026-01-28T00:00:00.000000+00:00"

    async def test_post_stub_keeps_listing_details(self, db):
        await upsert_submolt(db, {"id": "s1", "name": "robotics", "description": "Robots", "subscriber_count": 50})
        await upsert_submolt(db, {"id": "s1", "name": "robotics", "display_name": "Robotics"})

        row = await db.fetch_one("SELECT * FROM submolts WHERE id = 's1'")
        assert row["description"] == "Robots"
        assert row["subscriber_count"] == 50
        assert row["display_name"] == "Robotics"

    async def test_process_submolts_counts_only_identified(self, db):
        count = await process_submolts(db, [{"id": "s1", "name": "a"}, {"name": "no-id"}])

        assert count == 1
        assert await count_rows(db, "submolts") == 1


class TestPosts:

    async def test_upsert_twice_leaves_one_row(self, db):
        post = make_post("p1", upvotes=3)

        await upsert_post(db, post, observed_at=T1)
        await upsert_post(db, post, observed_at=T1)

        assert await count_rows(db, "posts") == 1

    async def test_recrawl_refreshes_counters_only(self, db):
        post = make_post("p1", upvotes=3, comment_count=1)
        await upsert_post(db, post, observed_at=T1)

        changed = {**post, "title": "Edited", "upvotes": 9, "comment_count": 4,
                   "created_at": "2020-01-01T00:00:00Z"}
        await upsert_post(db, changed, observed_at=T2)

        row = await db.fetch_one("SELECT * FROM posts WHERE id = 'p1'")
        assert row["upvotes"] == 9
        assert row["comment_count"] == 4
        assert row["title"] == "Post p1"
        assert row["created_at"] != "2020-01-01T00:00:00.000000+00:00"
        assert row["first_seen_at"] == T1
        assert row["last_updated_at"] == T2

    async def test_missing_author_is_filled_by_later_crawl(self, db):
        await upsert_post(db, make_post("p1", author=None), observed_at=T1)
        row = await db.fetch_one("SELECT author_id FROM posts WHERE id = 'p1'")
        assert row["author_id"] is None

        await upsert_post(db, make_post("p1", author="alice"), observed_at=T2)
        await upsert_post(db, make_post("p1", author=None), observed_at=T3)

        row = await db.fetch_one("SELECT author_id FROM posts WHERE id = 'p1'")
        assert row["author_id"] == "alice"

    async def test_process_posts_stores_author_and_submolt_first(self, db):
        result = await process_posts(db, [make_post("p1", author="alice", submolt="robotics"), {"title": "no id"}])

        assert result.processed == 1
        agent = await db.fetch_one("SELECT * FROM agents WHERE id = 'alice'")
        submolt = await db.fetch_one("SELECT * FROM submolts WHERE id = 'sub-robotics'")
        post = await db.fetch_one("SELECT * FROM posts WHERE id = 'p1'")
        assert agent["name"] == "alice"
        assert submolt["name"] == "robotics"
        assert post["author_id"] == "alice"
        assert post["submolt_id"] == "sub-robotics"

    async def test_string_submolt_leaves_reference_empty(self, db):
        post = {**make_post("p1"), "submolt": "general"}
        await process_posts(db, [post])

        post = await db.fetch_one("SELECT submolt_id FROM posts WHERE id = 'p1'")
        assert post["submolt_id"] is None
        assert await count_rows(db, "submolts") == 0


class TestComments:

    async def test_upsert_twice_leaves_one_row(self, db):
        comment = make_comment("c1", "bob")

        await upsert_comment(db, "p1", comment, observed_at=T1)
        await upsert_comment(db, "p1", {**comment, "upvotes": 5}, observed_at=T2)

        rows = await db.execute_query("SELECT * FROM comments")
        assert len(rows) == 1
        assert rows[0]["upvotes"] == 5
        assert rows[0]["first_seen_at"] == T1
        assert rows[0]["author_id"] == "bob"

    async def test_parent_from_tree_position(self, db):
        await upsert_comment(db, "p1", make_comment("c2", "carol"), parent_id="c1")

        row = await db.fetch_one("SELECT parent_comment_id FROM comments WHERE id = 'c2'")
        assert row["parent_comment_id"] == "c1"
