from __future__ import annotations

from datetime import datetime

from src.hr_admin.hr_admin.audit.stamper import AuditStamper
from src.hr_admin.hr_admin.lifecycle.workflow import LEAVE_WORKFLOW, PAYROLL_WORKFLOW

T0 = datetime(2026, 3, 1, 8, 0)
T1 = datetime(2026, 3, 2, 8, 0)


class _Reviewed:
    reviewed_by = 2
    reviewed_at = T0
    processed_by = None
    processed_at = None


class _Processed(_Reviewed):
    processed_by = 2
    processed_at = T0


def test_every_transition_touches_updated_at():
    fields = AuditStamper(clock=lambda: T1).stamp(
        PAYROLL_WORKFLOW, previous_status="approved", new_status="generated", actor_id=3
    )
    assert fields == {"updated_at": T1}


def test_leaving_initial_status_sets_review_stamp():
    fields = AuditStamper().stamp(
        PAYROLL_WORKFLOW, previous_status="generated", new_status="approved", actor_id=3, now=T1
    )
    assert fields["reviewed_by"] == 3
    assert fields["reviewed_at"] == T1
    assert "processed_by" not in fields


def test_review_stamp_is_never_overwritten():
    stamper = AuditStamper()
    fields = stamper.stamp(
        PAYROLL_WORKFLOW, previous_status="generated", new_status="approved", actor_id=3, record=_Reviewed(), now=T1
    )
    assert "reviewed_by" not in fields
    assert "reviewed_at" not in fields


def test_processed_stamp_only_once():
    stamper = AuditStamper()
    first = stamper.stamp(
        PAYROLL_WORKFLOW, previous_status="approved", new_status="paid", actor_id=3, record=_Reviewed(), now=T1
    )
    assert first["processed_by"] == 3
    again = stamper.stamp(
        PAYROLL_WORKFLOW, previous_status="approved", new_status="paid", actor_id=5, record=_Processed(), now=T1
    )
    assert "processed_by" not in again


def test_cancelled_leave_is_not_processed():
    fields = AuditStamper().stamp(
        LEAVE_WORKFLOW, previous_status="requested", new_status="cancelled", actor_id=4, now=T1
    )
    assert fields["reviewed_by"] == 4
    assert "processed_at" not in fields


def test_actor_id_is_stored_as_given():
    fields = AuditStamper().stamp(
        PAYROLL_WORKFLOW, previous_status="approved", new_status="paid", actor_id="u-7f3a", now=T1
    )
    assert fields["processed_by"] == "u-7f3a"
