from cityreport.models.issue import Issue
from cityreport.models.issue_update import IssueUpdate, UpdateType
from cityreport.models.notification import Notification, NotificationType
from cityreport.services.issue_updates import apply_assignment
from tests.factories import auth_headers, make_admin, make_issue


def _assignment_rows(db, issue_id):
    db.expire_all()
    return (
        db.query(IssueUpdate)
        .filter(IssueUpdate.issue_id == issue_id, IssueUpdate.update_type == UpdateType.assignment)
        .all()
    )


def test_assign_to_me(client, db, admin, headers):
    issue = make_issue(db)
    resp = client.put(f'/admin/issues/{issue.id}/assignment', json={'assigned_to': admin.id}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()['assignee']['full_name'] == 'Alex Admin'

    rows = _assignment_rows(db, issue.id)
    assert len(rows) == 1
    assert rows[0].old_value == 'Unassigned'
    assert rows[0].new_value == 'Alex Admin'
    assert rows[0].comment == 'Assigned to Alex Admin (admin@city.gov)'
    assert db.get(Issue, issue.id).assigned_to == admin.id
    # no self-notification
    assert db.query(Notification).count() == 0


def test_reassigning_same_admin_is_a_no_op(db, admin):
    issue = make_issue(db, assigned_to=admin.id)
    assert apply_assignment(db, issue, admin.id, admin) is None
    db.commit()
    assert _assignment_rows(db, issue.id) == []


def test_unassign(client, db, admin, headers):
    issue = make_issue(db, assigned_to=admin.id)
    resp = client.put(f'/admin/issues/{issue.id}/assignment', json={'assigned_to': None}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()['assigned_to'] is None

    rows = _assignment_rows(db, issue.id)
    assert len(rows) == 1
    assert rows[0].old_value == 'Previously assigned'
    assert rows[0].new_value == 'Unassigned'
    assert rows[0].comment == 'Assignment removed'


def test_inactive_assignee_rejected(client, db, headers):
    issue = make_issue(db)
    gone = make_admin(db, email='gone@city.gov', full_name='Gone', is_active=False)
    resp = client.put(f'/admin/issues/{issue.id}/assignment', json={'assigned_to': gone.id}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()['detail'] == 'Assignee must be an active admin'

    resp = client.put(f'/admin/issues/{issue.id}/assignment', json={'assigned_to': 999}, headers=headers)
    assert resp.status_code == 400
    assert _assignment_rows(db, issue.id) == []


def test_assignee_is_notified(client, db, admin, headers):
    issue = make_issue(db)
    worker = make_admin(db, email='worker@city.gov', full_name='Sam Worker')
    client.put(f'/admin/issues/{issue.id}/assignment', json={'assigned_to': worker.id}, headers=headers)

    db.expire_all()
    rows = db.query(Notification).filter(Notification.recipient_id == worker.id).all()
    assert len(rows) == 1
    assert rows[0].type == NotificationType.assignment
    assert 'Alex Admin' in rows[0].message

    # status changes by someone else reach the assignee
    client.patch(f'/admin/issues/{issue.id}', json={'status': 'in_progress'}, headers=headers)
    db.expire_all()
    kinds = [n.type for n in db.query(Notification).filter(Notification.recipient_id == worker.id).all()]
    assert NotificationType.status_update in kinds

    # the assignee's own changes do not
    client.patch(f'/admin/issues/{issue.id}', json={'status': 'resolved'}, headers=auth_headers(worker))
    db.expire_all()
    assert db.query(Notification).filter(Notification.recipient_id == worker.id).count() == 2
