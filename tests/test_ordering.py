import threading
import time

import pytest

from collabtodo.core.database import atomic
from collabtodo.core.exceptions import NotFoundError, StoreValidationError
from collabtodo.models.label import Label
from collabtodo.models.project import ViewType
from collabtodo.schemas.project import ProjectCreate
from collabtodo.schemas.section import SectionUpdate
from collabtodo.services.label_service import LabelService
from collabtodo.services.ordering import section_scope, project_scope, label_scope
from collabtodo.services.project_service import ProjectService
from collabtodo.services.section_service import SectionService


def create_project(db, user_id, name="Work", **kwargs):
    membership = ProjectService(db).create(user_id, ProjectCreate(name=name, view=ViewType.LIST, **kwargs))
    return membership.project_id

def section_orders(db, project_id):
    return [(s.name, s.order) for s in section_scope(db, project_id).items()]

def add_sections(db, user_id, project_id, *names):
    service = SectionService(db)
    return {name: service.add(user_id, project_id, name).id for name in names}

def assert_consecutive(orders):
    assert orders == list(range(orders[0], orders[0] + len(orders)))


# ============ APPEND / DENSITÉ ============

def test_append_gives_one_to_n(db, make_user):
    """N ajouts successifs => ordres {1..N} sans trou ni doublon"""
    make_user("alice")
    project_id = create_project(db, "alice")

    add_sections(db, "alice", project_id, "A", "B", "C", "D")

    assert section_orders(db, project_id) == [("A", 1), ("B", 2), ("C", 3), ("D", 4)]

def test_append_on_empty_scope_starts_at_one(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")

    assert section_scope(db, project_id).max_order() is None
    assert section_scope(db, project_id).append() == 1


# ============ INSERT ABOVE / BELOW ============

def test_insert_above_places_item_right_before_anchor(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B", "C")

    section = SectionService(db).add("alice", project_id, "D", above_section_id=ids["B"])

    assert section.order == 1
    names = [name for name, _ in section_orders(db, project_id)]
    assert names == ["A", "D", "B", "C"]
    orders = [order for _, order in section_orders(db, project_id)]
    assert_consecutive(orders)
    assert dict(section_orders(db, project_id))["A"] == 0

def test_insert_below_places_item_right_after_anchor(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B", "C")

    section = SectionService(db).add("alice", project_id, "D", below_section_id=ids["B"])

    assert section.order == 3
    assert section_orders(db, project_id) == [("A", 1), ("B", 2), ("D", 3), ("C", 4)]

def test_insert_with_both_anchors_is_rejected(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B")

    with pytest.raises(StoreValidationError):
        SectionService(db).add("alice", project_id, "X", above_section_id=ids["A"], below_section_id=ids["B"])

    assert section_orders(db, project_id) == [("A", 1), ("B", 2)]

def test_insert_above_missing_anchor_changes_nothing(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    add_sections(db, "alice", project_id, "A", "B")

    with pytest.raises(NotFoundError) as exc:
        SectionService(db).add("alice", project_id, "X", above_section_id=9999)

    assert exc.value.message == "Section not found"
    assert section_orders(db, project_id) == [("A", 1), ("B", 2)]

def test_project_created_above_another_project(db, make_user):
    make_user("alice")
    work_id = create_project(db, "alice", "Work")
    home_id = create_project(db, "alice", "Home", above_project_id=work_id)

    memberships = project_scope(db, "alice").items()
    assert [m.project.name for m in memberships] == ["Inbox", "Home", "Work"]
    assert_consecutive([m.order for m in memberships])
    assert ProjectService(db).get("alice", home_id).order + 1 == ProjectService(db).get("alice", work_id).order


# ============ SWAP ============

def test_swap_twice_restores_orders(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B", "C")
    service = SectionService(db)

    service.swap_order("alice", project_id, ids["A"], ids["C"])
    assert section_orders(db, project_id) == [("C", 1), ("B", 2), ("A", 3)]

    service.swap_order("alice", project_id, ids["A"], ids["C"])
    assert section_orders(db, project_id) == [("A", 1), ("B", 2), ("C", 3)]

def test_swap_with_missing_sibling_leaves_rows_untouched(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B")

    with pytest.raises(NotFoundError):
        SectionService(db).swap_order("alice", project_id, ids["A"], 9999)

    assert section_orders(db, project_id) == [("A", 1), ("B", 2)]

def test_swap_returns_both_rows(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B")

    rows = SectionService(db).swap_order("alice", project_id, ids["A"], ids["B"])

    assert [(r.name, r.order) for r in rows] == [("A", 2), ("B", 1)]


# ============ REMOVE / MOVE ============

def test_delete_closes_the_gap(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B", "C")

    SectionService(db).delete("alice", project_id, ids["B"])

    assert section_orders(db, project_id) == [("A", 1), ("C", 2)]

def test_move_to_shifts_members_in_between(db, make_user):
    make_user("alice")
    project_id = create_project(db, "alice")
    ids = add_sections(db, "alice", project_id, "A", "B", "C", "D")
    service = SectionService(db)

    service.update("alice", project_id, ids["D"], SectionUpdate(order=1))
    assert section_orders(db, project_id) == [("D", 1), ("A", 2), ("B", 3), ("C", 4)]

    # au-delà du dernier : borné à la fin
    service.update("alice", project_id, ids["A"], SectionUpdate(order=99))
    assert section_orders(db, project_id) == [("D", 1), ("B", 2), ("C", 3), ("A", 4)]

def test_label_scope_stays_dense_after_delete(db, make_user):
    make_user("alice")
    service = LabelService(db)
    first = service.create("alice", "urgent")
    second = service.create("alice", "home")
    service.create("alice", "later")

    service.delete("alice", second.id)

    labels = label_scope(db, "alice").items()
    assert [(l.title, l.order) for l in labels] == [("urgent", 1), ("later", 2)]
    assert labels[0].id == first.id

def test_scopes_are_per_user(db, make_user):
    make_user("alice")
    make_user("bob")
    LabelService(db).create("alice", "urgent")

    assert LabelService(db).create("bob", "urgent").order == 1


# ============ CONCURRENCE ============

def test_concurrent_appends_get_distinct_orders(db, make_user, session_factory):
    """Deux sessions qui ajoutent en même temps dans le même scope => ordres 1 et 2"""
    make_user("alice")
    # libère le verrou d'écriture de la session de test
    db.commit()
    barrier = threading.Barrier(2)
    errors = []

    def add_label(title):
        session = session_factory()
        try:
            barrier.wait()
            with atomic(session):
                order = label_scope(session, "alice").append()
                session.add(Label(title=title, user_id="alice", order=order))
                session.flush()
                # laisse à l'autre session le temps de lire MAX(order)
                time.sleep(0.2)
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=add_label, args=(title,)) for title in ("first", "second")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    orders = sorted(l.order for l in db.query(Label).filter(Label.user_id == "alice").all())
    assert orders == [1, 2]
