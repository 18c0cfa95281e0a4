import pytest
from datetime import datetime, timedelta

from collabtodo.core.database import atomic
from collabtodo.core.exceptions import InvariantViolation, NotFoundError
from collabtodo.models.membership import Membership
from collabtodo.models.project import Project, ViewType
from collabtodo.models.task import Task, SubTask
from collabtodo.schemas.project import ProjectCreate
from collabtodo.schemas.task import TaskCreate
from collabtodo.services.comment_service import CommentService
from collabtodo.schemas.comment import TaskTarget, ProjectTarget
from collabtodo.services.project_service import ProjectService
from collabtodo.services.guard import CollaboratorGuard
from collabtodo.services.search_service import full_text_search
from collabtodo.services.section_service import SectionService
from collabtodo.services.task_service import TaskService, descendant_ids
from collabtodo.services.user_service import UserService


def create_project(db, user_id, name="Work"):
    return ProjectService(db).create(user_id, ProjectCreate(name=name, view=ViewType.LIST)).project_id

def create_task(db, user_id, project_id, title, **extra):
    return TaskService(db).create(user_id, TaskCreate(title=title, project_id=project_id, **extra))


# ============ UserService ============

def test_ensure_user_creates_inbox_once(db, make_user):
    make_user("alice")
    make_user("alice")

    memberships = db.query(Membership).filter(Membership.user_id == "alice").all()
    assert len(memberships) == 1
    assert memberships[0].project.default_inbox == True
    assert memberships[0].project.name == "Inbox"
    assert memberships[0].owner == True

def test_ensure_user_updates_profile_only_when_given(db, make_user):
    make_user("alice")
    service = UserService(db)

    service.ensure_user("alice", display_name="Alice Liddell")
    user = service.ensure_user("alice")

    assert user.display_name == "Alice Liddell"
    assert user.email == "alice@example.com"

def test_search_users(db, make_user):
    make_user("alice")
    make_user("bob")
    assert [u.id for u in UserService(db).search("BOB")] == ["bob"]
    assert [u.id for u in UserService(db).search("example.com")] == ["alice", "bob"]


# ============ Transactions ============

def test_atomic_rolls_back_everything(db, make_user):
    make_user("alice")

    with pytest.raises(RuntimeError):
        with atomic(db):
            db.add(Project(name="Ghost", view=ViewType.LIST))
            db.flush()
            raise RuntimeError("boom")

    assert db.query(Project).filter(Project.name == "Ghost").first() is None

def test_failed_create_leaves_no_partial_rows(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    before = db.query(Task).count()

    with pytest.raises(NotFoundError):
        create_task(db, "alice", project_id, "Orphan", parent_task_id=9999)

    assert db.query(Task).count() == before


# ============ Guard / leave ============

def test_leave_removes_exactly_one_membership(db, make_user):
    make_user("alice")
    make_user("bob")
    project_id = create_project(db, "alice", "Team")
    service = ProjectService(db)
    service.share("alice", project_id, ["bob"])

    solo_id = create_project(db, "alice", "Solo")
    with pytest.raises(InvariantViolation):
        service.leave("alice", solo_id)

    service.leave("alice", project_id)

    rows = db.query(Membership).filter(Membership.project_id == project_id).all()
    assert [(m.user_id, m.owner) for m in rows] == [("bob", True)]


def test_guard_reports_requested_entity(db, make_user):
    make_user("alice")
    make_user("bob")
    project_id = create_project(db, "alice", "Team")
    guard = CollaboratorGuard(db)

    with pytest.raises(NotFoundError) as exc:
        guard.require_collaborator("bob", project_id, entity="Section")
    assert exc.value.message == "Section not found"

    with pytest.raises(NotFoundError) as exc:
        guard.require_collaborator("bob", project_id)
    assert exc.value.message == "Project not found"

def test_require_owner_rejects_plain_collaborator(db, make_user):
    make_user("alice")
    make_user("bob")
    project_id = create_project(db, "alice", "Team")
    ProjectService(db).share("alice", project_id, ["bob"])
    guard = CollaboratorGuard(db)

    assert guard.require_owner("alice", project_id).owner == True
    with pytest.raises(InvariantViolation):
        guard.require_owner("bob", project_id)

def test_share_accepts_targets_in_any_order(db, make_user):
    for user_id in ("alice", "bob", "carol"):
        make_user(user_id)
    project_id = create_project(db, "alice", "Team")

    ProjectService(db).share("alice", project_id, ["carol", "bob", "carol"])

    rows = db.query(Membership).filter(Membership.project_id == project_id).order_by(Membership.user_id).all()
    assert [(m.user_id, m.owner, m.order) for m in rows] == [
        ("alice", True, 2),
        ("bob", False, 2),
        ("carol", False, 2),
    ]


# ============ Tâches ============

def test_descendant_ids_walks_the_forest(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    root = create_task(db, "alice", project_id, "Root")
    child = create_task(db, "alice", project_id, "Child", parent_task_id=root.id)
    grandchild = create_task(db, "alice", project_id, "Grandchild", parent_task_id=child.id)
    other = create_task(db, "alice", project_id, "Other", parent_task_id=root.id)

    assert sorted(descendant_ids(db, root.id)) == sorted([child.id, grandchild.id, other.id])
    assert descendant_ids(db, grandchild.id) == []

def test_today_and_upcoming(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    now = datetime(2030, 5, 10, 15, 0)
    create_task(db, "alice", project_id, "Overdue", due_date=now - timedelta(days=2))
    create_task(db, "alice", project_id, "Today", due_date=datetime(2030, 5, 10, 20, 0))
    create_task(db, "alice", project_id, "Tomorrow", due_date=datetime(2030, 5, 11, 8, 0))
    create_task(db, "alice", project_id, "Done", due_date=now, completed=True)
    create_task(db, "alice", project_id, "Someday")

    service = TaskService(db)
    assert [t.title for t in service.today("alice", now=now)] == ["Overdue", "Today"]
    assert [t.title for t in service.upcoming("alice", now=now)] == ["Tomorrow"]

def test_views_cover_shared_projects_only(db, make_user):
    make_user("alice")
    make_user("bob")
    project_id = create_project(db, "alice", "Team")
    private_id = create_project(db, "alice", "Private")
    now = datetime(2030, 5, 10, 9, 0)
    create_task(db, "alice", project_id, "Shared", due_date=now)
    create_task(db, "alice", private_id, "Hidden", due_date=now)
    ProjectService(db).share("alice", project_id, ["bob"])

    assert [t.title for t in TaskService(db).today("bob", now=now)] == ["Shared"]

def test_project_duplicate_remaps_every_edge(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    section = SectionService(db).add("alice", project_id, "S")
    root = create_task(db, "alice", project_id, "Root", section_id=section.id)
    create_task(db, "alice", project_id, "Child", section_id=section.id, parent_task_id=root.id)
    create_task(db, "alice", project_id, "Loose")

    copy = ProjectService(db).duplicate("alice", project_id)

    copied_ids = {t.id for t in db.query(Task).filter(Task.project_id == copy.project_id).all()}
    assert len(copied_ids) == 3
    edges = db.query(SubTask).filter(SubTask.sub_task_id.in_(copied_ids)).all()
    assert len(edges) == 1
    assert edges[0].task_id in copied_ids
    assert copy.project.name == "Copy of Work"

def test_section_duplicate_returns_tasks_in_order(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    section = SectionService(db).add("alice", project_id, "S")
    for title in ("One", "Two", "Three"):
        create_task(db, "alice", project_id, title, section_id=section.id)

    copy = SectionService(db).duplicate("alice", project_id, section.id)

    assert [(t.title, t.task_order) for t in copy.tasks] == [("One", 1), ("Two", 2), ("Three", 3)]


# ============ Recherche ============

def test_full_text_search(db, make_user):
    make_user("alice")
    make_user("bob")
    project_id = create_project(db, "alice", "Garden plan")
    task = create_task(db, "alice", project_id, "Buy seeds", description="garden seeds for spring")
    CommentService(db).add("alice", TaskTarget(id=task.id), "Ask about garden tools")
    CommentService(db).add("alice", ProjectTarget(id=project_id), "Nothing relevant")

    results = full_text_search(db, "alice", "garden")
    assert sorted((r.result_type, r.id) for r in results) == sorted([
        ("project", project_id),
        ("task", task.id),
        ("comment", CommentService(db).list("alice", TaskTarget(id=task.id))[0].id),
    ])
    assert full_text_search(db, "bob", "garden") == []
