import unittest

from taskhub.errors import StoreUnavailable
from taskhub.roles import AdminCaller, MemberCaller
from taskhub.services.context import DashboardContext
from taskhub.services.recent_items import RecentItemsFetcher
from taskhub.tests.store_fixtures import NOW, CallSpy, Seeder, open_memory_store, ts


class RecentItemsFetcherTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await open_memory_store()
        self.seed = Seeder(self.db)
        await self.seed.user("admin-1", role="admin")
        await self.seed.user("u-1", username="bob")
        await self.seed.user("u-2", username="carol")
        await self.seed.project("P-1", "admin-1", name="Launch")
        self.fetcher = RecentItemsFetcher(self.seed.tasks, self.seed.activities)
        self.admin_ctx = DashboardContext.create(AdminCaller("admin-1"), NOW, 30)
        self.member_ctx = DashboardContext.create(MemberCaller("u-1"), NOW, 30)

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def test_pages_are_disjoint_and_newest_first(self) -> None:
        for i in range(12):
            await self.seed.task(f"T-{i:02d}", "P-1", updated_at=ts(minutes_ago=i))

        first = await self.fetcher.recent_tasks(self.admin_ctx, limit=5, offset=0)
        second = await self.fetcher.recent_tasks(self.admin_ctx, limit=5, offset=5)

        self.assertEqual([t.id for t in second], ["T-05", "T-06", "T-07", "T-08", "T-09"])
        self.assertFalse({t.id for t in first} & {t.id for t in second})
        stamps = [t.updatedAt for t in first + second]
        self.assertEqual(stamps, sorted(stamps, reverse=True))

    async def test_members_only_see_their_assigned_tasks(self) -> None:
        await self.seed.task("T-1", "P-1", assignee_id="u-1", due_date="2026-03-10")
        await self.seed.task("T-2", "P-1", assignee_id="u-2")
        await self.seed.task("T-3", "P-1")

        tasks = await self.fetcher.recent_tasks(self.member_ctx)

        self.assertEqual([t.id for t in tasks], ["T-1"])
        self.assertEqual(tasks[0].projectName, "Launch")
        self.assertEqual(tasks[0].assigneeName, "bob")
        self.assertEqual(tasks[0].dueDate, "2026-03-10")

    async def test_members_only_see_their_own_activity(self) -> None:
        await self.seed.activity("A-1", "u-1", "task_created", project_id="P-1", created_at=ts(days_ago=2))
        await self.seed.activity("A-2", "u-2", "task_updated", created_at=ts(days_ago=1))
        await self.seed.activity("A-3", "u-1", "comment_added", created_at=ts(minutes_ago=3))

        mine = await self.fetcher.recent_activities(self.member_ctx)
        everyone = await self.fetcher.recent_activities(self.admin_ctx)

        self.assertEqual([a.id for a in mine], ["A-3", "A-1"])
        self.assertEqual(mine[1].projectName, "Launch")
        self.assertEqual(mine[0].description, "")
        self.assertEqual([a.id for a in everyone], ["A-3", "A-2", "A-1"])

    async def test_missing_user_falls_back_to_unknown(self) -> None:
        await self.seed.activity("A-1", "ghost")

        activities = await self.fetcher.recent_activities(self.admin_ctx)

        self.assertEqual(activities[0].userName, "Unknown User")

    async def test_connection_errors_surface_as_store_unavailable(self) -> None:
        fetcher = RecentItemsFetcher(
            CallSpy(self.seed.tasks, fail={"list_recent": OSError("disk gone")}),
            self.seed.activities,
        )
        with self.assertRaises(StoreUnavailable) as ctx:
            await fetcher.recent_tasks(self.admin_ctx)
        self.assertEqual(ctx.exception.message, "Failed to get recent tasks")


if __name__ == "__main__":
    unittest.main()
