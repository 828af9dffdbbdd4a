"""Tests for department hierarchy lookups."""
from __future__ import annotations

from useradmin.services.departments import DeptService


def test_find_by_pid_returns_direct_children(db_session, org):
    children = DeptService(db_session).find_by_pid(org.depts["Head Office"].id)
    assert {d.name for d in children} == {"R&D", "Finance"}


def test_descendant_ids_walks_whole_subtree(db_session, org):
    ids = DeptService(db_session).descendant_ids(org.depts["Head Office"].id)
    assert ids == {
        org.depts["R&D"].id,
        org.depts["Backend"].id,
        org.depts["Frontend"].id,
        org.depts["Finance"].id,
    }


def test_descendant_ids_of_leaf_is_empty(db_session, org):
    assert DeptService(db_session).descendant_ids(org.depts["Backend"].id) == set()


def test_disabled_department_prunes_its_subtree(db_session, org):
    org.depts["R&D"].enabled = False
    db_session.flush()

    ids = DeptService(db_session).descendant_ids(org.depts["Head Office"].id)
    assert ids == {org.depts["Finance"].id}
