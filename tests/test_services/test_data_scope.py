"""Tests for department data scoping."""
from __future__ import annotations

from useradmin.models.security import DATA_SCOPE_ALL, DATA_SCOPE_CUSTOM, DATA_SCOPE_DEPT, Role
from useradmin.services.data_scope import authorized_dept_ids, resolve_dept_scope
from useradmin.services.departments import DeptService

TREE = {1: {2, 3}, 2: {3}, 3: set(), 7: set()}


def _descendants(dept_id: int) -> set[int]:
    return TREE.get(dept_id, set())


def test_disjoint_request_and_scope_is_invisible():
    scope = resolve_dept_scope(7, {1, 2, 3}, _descendants)
    assert scope.visible is False
    assert scope.dept_ids == frozenset()


def test_request_is_intersected_with_scope():
    scope = resolve_dept_scope(1, {2, 3, 9}, _descendants)
    assert scope.visible is True
    assert scope.dept_ids == {2, 3}


def test_no_request_uses_full_scope():
    scope = resolve_dept_scope(None, {4, 5}, _descendants)
    assert scope.visible is True
    assert scope.dept_ids == {4, 5}


def test_empty_scope_uses_request():
    scope = resolve_dept_scope(1, set(), _descendants)
    assert scope.visible is True
    assert scope.dept_ids == {1, 2, 3}


def test_empty_scope_and_no_request_is_unrestricted():
    scope = resolve_dept_scope(None, set(), _descendants)
    assert scope.visible is True
    assert scope.dept_ids == frozenset()


def test_descendants_not_looked_up_without_request():
    calls = []

    def lookup(dept_id):
        calls.append(dept_id)
        return set()

    resolve_dept_scope(None, {1}, lookup)
    assert calls == []


def test_all_scope_role_is_unrestricted(db_session, org):
    depts = DeptService(db_session)
    roles = [org.roles["staff"], org.roles["admin"]]
    assert authorized_dept_ids(roles, org.depts["Finance"].id, depts) == set()


def test_dept_scope_role_sees_own_department(db_session, org):
    depts = DeptService(db_session)
    ids = authorized_dept_ids([org.roles["staff"]], org.depts["Backend"].id, depts)
    assert ids == {org.depts["Backend"].id}


def test_custom_scope_role_sees_departments_and_subtree(db_session, org):
    depts = DeptService(db_session)
    ids = authorized_dept_ids([org.roles["manager"]], org.depts["Finance"].id, depts)
    assert ids == {org.depts["R&D"].id, org.depts["Backend"].id, org.depts["Frontend"].id}


def test_roles_are_combined(db_session, org):
    depts = DeptService(db_session)
    ids = authorized_dept_ids([org.roles["manager"], org.roles["staff"]], org.depts["Finance"].id, depts)
    assert ids == {
        org.depts["R&D"].id,
        org.depts["Backend"].id,
        org.depts["Frontend"].id,
        org.depts["Finance"].id,
    }


def test_unknown_scope_contributes_nothing(db_session, org):
    depts = DeptService(db_session)
    odd = Role(name="odd", level=4, data_scope="SOMETHING")
    assert authorized_dept_ids([odd], org.depts["Backend"].id, depts) == set()


def test_scope_constants_match_seeded_roles(org):
    assert org.roles["admin"].data_scope == DATA_SCOPE_ALL
    assert org.roles["manager"].data_scope == DATA_SCOPE_CUSTOM
    assert org.roles["staff"].data_scope == DATA_SCOPE_DEPT


def test_dept_scope_without_department_adds_nothing_and_warns(db_session, org, caplog):
    depts = DeptService(db_session)
    with caplog.at_level("WARNING", logger="useradmin.services.data_scope"):
        ids = authorized_dept_ids([org.roles["staff"]], None, depts)
    assert ids == set()
    assert "scopes to own department but user has none" in caplog.text
