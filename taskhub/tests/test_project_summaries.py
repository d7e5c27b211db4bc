import unittest

from taskhub.models import ProjectSummaryView
from taskhub.roles import AdminCaller, MemberCaller
from taskhub.services.context import DashboardContext
from taskhub.services.membership import ProjectMembershipResolver
from taskhub.services.project_summaries import (
    ProjectSummaryBuilder,
    filter_by_status,
    progress_percentage,
)
from taskhub.tests.store_fixtures import NOW, CallSpy, Seeder, open_memory_store, ts


class ProgressPercentageTests(unittest.TestCase):
    def test_rounds_half_up(self) -> None:
        self.assertEqual(progress_percentage(1, 2), 50)
        self.assertEqual(progress_percentage(1, 8), 13)
        self.assertEqual(progress_percentage(1, 3), 33)
        self.assertEqual(progress_percentage(2, 3), 67)
        self.assertEqual(progress_percentage(1, 200), 1)

    def test_bounds(self) -> None:
        self.assertEqual(progress_percentage(0, 0), 0)
        self.assertEqual(progress_percentage(0, 5), 0)
        self.assertEqual(progress_percentage(5, 5), 100)
        self.assertEqual(progress_percentage(7, 5), 100)


class StatusFilterTests(unittest.TestCase):
    def _summary(self, project_id: str, progress: int) -> ProjectSummaryView:
        return ProjectSummaryView(
            id=project_id,
            name=project_id,
            progressPercentage=progress,
            createdBy="u-1",
            createdAt="2026-01-01T00:00:00Z",
            updatedAt="2026-01-01T00:00:00Z",
        )

    def test_active_and_completed_split_on_full_progress(self) -> None:
        projects = [self._summary("A", 0), self._summary("B", 100), self._summary("C", 99)]

        self.assertEqual([p.id for p in filter_by_status(projects, "active")], ["A", "C"])
        self.assertEqual([p.id for p in filter_by_status(projects, "completed")], ["B"])
        self.assertEqual(len(filter_by_status(projects, "all")), 3)


class ProjectSummaryBuilderTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await open_memory_store()
        self.seed = Seeder(self.db)
        await self.seed.user("u-1", username="bob")
        await self.seed.user("u-2", username="carol")

    async def asyncTearDown(self) -> None:
        await self.db.close()

    def _builder(self, projects=None) -> ProjectSummaryBuilder:
        projects = projects or self.seed.projects
        return ProjectSummaryBuilder(
            projects,
            self.seed.tasks,
            ProjectMembershipResolver(projects, self.seed.tasks),
        )

    async def test_member_summaries_cover_created_and_assigned_projects(self) -> None:
        await self.seed.project("X", "u-1", updated_at=ts(days_ago=1))
        await self.seed.task("X-1", "X", status="done")
        await self.seed.task("X-2", "X", status="todo")
        await self.seed.project("Y", "u-2", updated_at=ts(days_ago=2))
        await self.seed.task("Y-1", "Y", assignee_id="u-1")
        await self.seed.project("Z", "u-2")

        summaries = await self._builder().build(DashboardContext.create(MemberCaller("u-1"), NOW, 30))

        self.assertEqual([s.id for s in summaries], ["X", "Y"])
        x, y = summaries
        self.assertEqual((x.taskCount, x.completedTaskCount, x.progressPercentage), (2, 1, 50))
        self.assertEqual((y.taskCount, y.completedTaskCount, y.progressPercentage), (1, 0, 0))
        self.assertEqual(x.creatorName, "bob")
        self.assertEqual(y.creatorName, "carol")

    async def test_admin_sees_every_project_including_empty_ones(self) -> None:
        await self.seed.project("X", "u-1", updated_at=ts(days_ago=1))
        await self.seed.project("Y", "ghost", updated_at=ts(days_ago=2))

        summaries = await self._builder().build(DashboardContext.create(AdminCaller("a-1"), NOW, 30))

        self.assertEqual([s.id for s in summaries], ["X", "Y"])
        self.assertEqual(summaries[1].progressPercentage, 0)
        self.assertEqual(summaries[1].creatorName, "Unknown User")

    async def test_empty_membership_issues_no_project_query(self) -> None:
        projects = CallSpy(self.seed.projects)

        summaries = await self._builder(projects).build(DashboardContext.create(MemberCaller("u-9"), NOW, 30))

        self.assertEqual(summaries, [])
        self.assertEqual(projects.count("list_page"), 0)

    async def test_pagination_applies_to_visible_projects(self) -> None:
        for i in range(4):
            await self.seed.project(f"P-{i}", "u-1", updated_at=ts(days_ago=i))

        page = await self._builder().build_summaries(None, limit=2, offset=1)

        self.assertEqual([s.id for s in page], ["P-1", "P-2"])


if __name__ == "__main__":
    unittest.main()
