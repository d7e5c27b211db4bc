import unittest
from datetime import timedelta

from taskhub.errors import QueryFailed, StoreUnavailable
from taskhub.roles import AdminCaller, MemberCaller
from taskhub.services.context import DashboardContext
from taskhub.services.membership import ProjectMembership, ProjectMembershipResolver
from taskhub.tests.store_fixtures import NOW, CallSpy, Seeder, open_memory_store, ts


class ProjectMembershipResolverTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await open_memory_store()
        self.seed = Seeder(self.db)
        await self.seed.user("u-1")
        await self.seed.user("u-2")
        self.resolver = ProjectMembershipResolver(self.seed.projects, self.seed.tasks)

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def test_created_and_assigned_projects_are_unioned(self) -> None:
        await self.seed.project("X", "u-1")
        await self.seed.task("X-1", "X", status="done")
        await self.seed.task("X-2", "X", status="todo")
        await self.seed.project("Y", "u-2")
        await self.seed.task("Y-1", "Y", assignee_id="u-1")

        membership = await self.resolver.resolve("u-1")

        self.assertEqual(membership.project_ids, frozenset({"X", "Y"}))
        self.assertEqual(len(membership), 2)
        self.assertIn("Y", membership)

    async def test_owner_who_is_also_assignee_is_counted_once(self) -> None:
        await self.seed.project("X", "u-1")
        await self.seed.task("X-1", "X", assignee_id="u-1")
        await self.seed.task("X-2", "X", assignee_id="u-1")

        membership = await self.resolver.resolve("u-1")

        self.assertEqual(membership.project_ids, frozenset({"X"}))

    async def test_deleted_projects_and_tasks_do_not_grant_membership(self) -> None:
        await self.seed.project("X", "u-1", deleted_at=ts(days_ago=1))
        await self.seed.project("Y", "u-2")
        await self.seed.task("Y-1", "Y", assignee_id="u-1", deleted_at=ts(days_ago=1))

        membership = await self.resolver.resolve("u-1")

        self.assertEqual(membership.project_ids, frozenset())

    async def test_user_without_projects_gets_empty_set(self) -> None:
        membership = await self.resolver.resolve("nobody")
        self.assertEqual(len(membership), 0)

    async def test_for_context_skips_admins_and_reuses_attached_membership(self) -> None:
        projects = CallSpy(self.seed.projects)
        tasks = CallSpy(self.seed.tasks)
        resolver = ProjectMembershipResolver(projects, tasks)

        admin_ctx = DashboardContext(AdminCaller("a-1"), NOW, NOW - timedelta(days=30))
        self.assertIsNone(await resolver.for_context(admin_ctx))

        cached = ProjectMembership(user_id="u-1", project_ids=frozenset({"Z"}))
        member_ctx = DashboardContext(MemberCaller("u-1"), NOW, NOW - timedelta(days=30), cached)
        self.assertIs(await resolver.for_context(member_ctx), cached)
        self.assertEqual(projects.calls, [])
        self.assertEqual(tasks.calls, [])

    async def test_store_failures_are_wrapped(self) -> None:
        resolver = ProjectMembershipResolver(
            CallSpy(self.seed.projects, fail={"list_ids_created_by": RuntimeError("syntax error")}),
            self.seed.tasks,
        )
        with self.assertRaises(QueryFailed) as ctx:
            await resolver.resolve("u-1")
        self.assertEqual(ctx.exception.message, "Failed to get user project data")

        resolver = ProjectMembershipResolver(
            self.seed.projects,
            CallSpy(self.seed.tasks, fail={"list_project_ids_assigned_to": OSError("connection reset")}),
        )
        with self.assertRaises(StoreUnavailable):
            await resolver.resolve("u-1")


if __name__ == "__main__":
    unittest.main()
