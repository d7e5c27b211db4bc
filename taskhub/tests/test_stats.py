import unittest

from taskhub.errors import QueryFailed
from taskhub.roles import AdminCaller, MemberCaller
from taskhub.services.context import DashboardContext
from taskhub.services.membership import ProjectMembershipResolver
from taskhub.services.stats import StatsAggregator
from taskhub.tests.store_fixtures import NOW, CallSpy, Seeder, open_memory_store, ts


class StatsAggregatorTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await open_memory_store()
        self.seed = Seeder(self.db)
        await self.seed.user("admin-1", role="admin")
        await self.seed.user("u-1")
        await self.seed.user("u-2")

    async def asyncTearDown(self) -> None:
        await self.db.close()

    def _aggregator(self, projects=None, tasks=None) -> StatsAggregator:
        projects = projects or self.seed.projects
        tasks = tasks or self.seed.tasks
        return StatsAggregator(
            tasks,
            projects,
            self.seed.users,
            ProjectMembershipResolver(projects, tasks),
        )

    async def test_overdue_in_progress_task_counts_for_admin(self) -> None:
        await self.seed.project("P-1", "admin-1")
        await self.seed.task("T-1", "P-1", status="in-progress", due_date=ts(days_ago=5))

        stats = await self._aggregator().compute(DashboardContext.create(AdminCaller("admin-1"), NOW, 30))

        self.assertEqual(stats.overdueTasks, 1)
        self.assertEqual(stats.inProgressTasks, 1)
        self.assertEqual(stats.totalTasks, 1)

    async def test_mixed_project_is_both_active_and_completed(self) -> None:
        await self.seed.project("P-1", "admin-1")
        await self.seed.task("T-1", "P-1", status="done")
        await self.seed.task("T-2", "P-1", status="todo")

        stats = await self._aggregator().compute(DashboardContext.create(AdminCaller("admin-1"), NOW, 30))

        self.assertEqual(stats.totalProjects, 1)
        self.assertEqual(stats.activeProjects, 1)
        self.assertEqual(stats.completedProjects, 1)
        self.assertEqual(stats.completedTasks, 1)

    async def test_admin_user_counts_use_stats_window(self) -> None:
        await self.seed.activity("A-1", "u-1", created_at=ts(days_ago=3))
        await self.seed.activity("A-2", "u-2", created_at=ts(days_ago=12))

        aggregator = self._aggregator()
        week = await aggregator.compute(DashboardContext.create(AdminCaller("admin-1"), NOW, 7))
        month = await aggregator.compute(DashboardContext.create(AdminCaller("admin-1"), NOW, 30))

        self.assertEqual(week.totalUsers, 3)
        self.assertEqual(week.activeUsers, 1)
        self.assertEqual(month.activeUsers, 2)

    async def test_member_stats_are_scoped_to_assignments_and_membership(self) -> None:
        await self.seed.project("X", "u-1")
        await self.seed.task("X-1", "X", status="done")
        await self.seed.task("X-2", "X", status="todo", assignee_id="u-2")
        await self.seed.project("Y", "u-2")
        await self.seed.task("Y-1", "Y", status="in-progress", assignee_id="u-1", due_date=ts(days_ago=1))
        await self.seed.project("Z", "u-2")
        await self.seed.task("Z-1", "Z", status="done", assignee_id="u-2")
        await self.seed.activity("A-1", "u-1")

        stats = await self._aggregator().compute(DashboardContext.create(MemberCaller("u-1"), NOW, 30))

        self.assertEqual(stats.totalTasks, 1)
        self.assertEqual(stats.inProgressTasks, 1)
        self.assertEqual(stats.overdueTasks, 1)
        self.assertEqual(stats.completedTasks, 0)
        self.assertEqual(stats.totalProjects, 2)
        self.assertEqual(stats.activeProjects, 2)
        self.assertEqual(stats.completedProjects, 1)
        self.assertEqual(stats.totalUsers, 0)
        self.assertEqual(stats.activeUsers, 0)

    async def test_member_without_projects_gets_zero_project_counts(self) -> None:
        await self.seed.project("P-1", "u-2")
        await self.seed.task("T-1", "P-1", status="todo")

        stats = await self._aggregator().compute(DashboardContext.create(MemberCaller("u-1"), NOW, 30))

        self.assertEqual(stats.totalProjects, 0)
        self.assertEqual(stats.activeProjects, 0)
        self.assertEqual(stats.completedProjects, 0)

    async def test_soft_deleted_rows_are_excluded(self) -> None:
        await self.seed.project("P-1", "admin-1")
        await self.seed.task("T-1", "P-1", status="todo", deleted_at=ts(days_ago=1))
        await self.seed.project("P-2", "admin-1", deleted_at=ts(days_ago=1))
        await self.seed.task("T-2", "P-2", status="done")

        stats = await self._aggregator().compute(DashboardContext.create(AdminCaller("admin-1"), NOW, 30))

        self.assertEqual(stats.totalTasks, 0)
        self.assertEqual(stats.totalProjects, 1)
        self.assertEqual(stats.activeProjects, 0)
        self.assertEqual(stats.completedProjects, 0)

    async def test_count_failures_carry_role_specific_message(self) -> None:
        failing_tasks = CallSpy(self.seed.tasks, fail={"count_where": RuntimeError("no such column")})

        with self.assertRaises(QueryFailed) as ctx:
            await self._aggregator(tasks=failing_tasks).compute(
                DashboardContext.create(AdminCaller("admin-1"), NOW, 30)
            )
        self.assertEqual(ctx.exception.message, "Failed to get admin statistics")

        with self.assertRaises(QueryFailed) as ctx:
            await self._aggregator(tasks=failing_tasks).compute(
                DashboardContext.create(MemberCaller("u-1"), NOW, 30)
            )
        self.assertEqual(ctx.exception.message, "Failed to get user statistics")


if __name__ == "__main__":
    unittest.main()
