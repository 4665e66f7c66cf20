from cityreport.models.issue import Issue
from cityreport.models.notification import Notification, NotificationType
from tests.factories import make_admin, make_issue


def _report(**kw):
    body = {
        'title': 'Pothole on Main Street',
        'description': 'Large pothole near the intersection',
        'category': 'pothole',
        'location_address': '123 Main Street',
        'citizen_name': '',
        'citizen_email': '',
        'citizen_phone': '',
    }
    body.update(kw)
    return body


def test_submit_report_routes_and_defaults(client, db):
    resp = client.post('/report', json=_report())
    assert resp.status_code == 201
    data = resp.json()
    assert data['assigned_department'] == 'Public Works'
    assert data['status'] == 'submitted'
    assert data['priority'] == 'medium'
    assert data['track_url'] == f"/track?id={data['id']}"
    assert 'citizen_email' not in data

    issue = db.get(Issue, data['id'])
    assert issue.citizen_name is None
    assert issue.citizen_email is None
    assert issue.citizen_phone is None
    assert issue.assigned_to is None


def test_submit_report_validates_fields(client):
    assert client.post('/report', json=_report(title='')).status_code == 422
    assert client.post('/report', json=_report(category='flooding')).status_code == 422
    assert client.post('/report', json=_report(citizen_email='not-an-email')).status_code == 422


def test_streetlight_report_goes_to_utilities(client):
    resp = client.post('/report', json=_report(category='streetlight', priority='high'))
    assert resp.status_code == 201
    assert resp.json()['assigned_department'] == 'Utilities'
    assert resp.json()['priority'] == 'high'


def test_submission_notifies_active_admins(client, db):
    a1 = make_admin(db, email='one@city.gov', full_name='One')
    a2 = make_admin(db, email='two@city.gov', full_name='Two')
    make_admin(db, email='gone@city.gov', full_name='Gone', is_active=False)

    issue_id = client.post('/report', json=_report()).json()['id']

    db.expire_all()
    rows = db.query(Notification).filter(Notification.issue_id == issue_id).all()
    assert sorted(n.recipient_id for n in rows) == sorted([a1.id, a2.id])
    assert all(n.type == NotificationType.issue_submitted for n in rows)
    assert all(not n.is_read for n in rows)


def test_track_found_hides_contact_details(client, db):
    issue = make_issue(db, citizen_name='Jane', citizen_email='jane@example.com', citizen_phone='555-0100')
    resp = client.get('/track', params={'id': str(issue.id)})
    assert resp.status_code == 200
    data = resp.json()
    assert data['id'] == issue.id
    assert data['title'] == 'Pothole on Main Street'
    for key in ('citizen_name', 'citizen_email', 'citizen_phone', 'assigned_to'):
        assert key not in data


def test_track_unknown_id(client):
    for raw in ('999', 'abc', ' '):
        resp = client.get('/track', params={'id': raw})
        assert resp.status_code == 404
        assert resp.json()['detail'] == 'No report found with that ID.'


def test_home_lists_recent_issues_and_counts(client, db):
    for n in range(8):
        make_issue(db, title=f'Issue {n}')
    data = client.get('/').json()
    assert len(data['recent_issues']) == 6
    assert data['status_counts'] == {'submitted': 8}
