from datetime import datetime, timezone
from cityreport.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus
from cityreport.services.filters import IssueFilters
from tests.factories import make_admin, make_issue


def test_defaults_are_not_serialized():
    f = IssueFilters()
    assert f.to_params() == {}
    assert f.active_count == 0
    assert f.location() == '/admin/issues'
    assert f.chips() == []


def test_params_round_trip():
    params = {'search': 'pothole', 'status': 'in_progress', 'assignedTo': 'unassigned', 'dateFrom': '2026-01-01'}
    f = IssueFilters.from_params(params)
    assert f.to_params() == params
    assert f.active_count == 4
    assert IssueFilters.from_params(f.to_params()) == f
    assert f.as_dict()['category'] == 'all'


def test_invalid_values_fall_back_to_defaults():
    f = IssueFilters.from_params({
        'status': 'bogus', 'priority': 'all', 'assignedTo': 'bob', 'dateTo': '31/12/2026', 'search': '  ',
    })
    assert f == IssueFilters()
    f = IssueFilters.from_params({'assignedTo': '\u00b2'})
    assert f == IssueFilters()
    f = IssueFilters.from_params({'assignedTo': '\u0663'})
    assert f == IssueFilters()


def test_chips_link_to_state_without_that_filter():
    f = IssueFilters.from_params({'status': 'resolved', 'category': 'pothole'})
    chips = {c['key']: c for c in f.chips()}
    assert chips['status']['value'] == 'resolved'
    assert chips['status']['remove_url'] == '/admin/issues?category=pothole'
    assert chips['category']['remove_url'] == '/admin/issues?status=resolved'


def _titles(db, **params):
    f = IssueFilters.from_params(params)
    return sorted(i.title for i in f.apply(db.query(Issue)).all())


def test_apply_exact_matches(db):
    worker = make_admin(db, email='w@city.gov', full_name='Worker')
    make_issue(db, title='A', status=IssueStatus.resolved, category=IssueCategory.sanitation,
               assigned_department='Sanitation', assigned_to=worker.id)
    make_issue(db, title='B', priority=IssuePriority.urgent)
    make_issue(db, title='C', category=IssueCategory.traffic, assigned_department='Transportation')

    assert _titles(db, status='resolved') == ['A']
    assert _titles(db, priority='urgent') == ['B']
    assert _titles(db, category='traffic') == ['C']
    assert _titles(db, department='Public Works') == ['B']
    assert _titles(db, assignedTo=str(worker.id)) == ['A']
    assert _titles(db, assignedTo='unassigned') == ['B', 'C']
    assert _titles(db, status='submitted', category='pothole') == ['B']


def test_search_is_case_insensitive_over_title_and_description(db):
    make_issue(db, title='Broken lamp', description='Dark corner')
    make_issue(db, title='Graffiti', description='Paint on the LAMP post')
    make_issue(db, title='Trash', description='Overflowing bin')
    make_issue(db, title='100% blocked', description='Road closed')

    assert _titles(db, search='lamp') == ['Broken lamp', 'Graffiti']
    assert _titles(db, search='%') == ['100% blocked']


def test_date_range_includes_whole_end_day(db):
    make_issue(db, title='Jan', created_at=datetime(2026, 1, 31, 23, 59, tzinfo=timezone.utc))
    make_issue(db, title='Feb', created_at=datetime(2026, 2, 1, 0, 0, tzinfo=timezone.utc))
    make_issue(db, title='Mar', created_at=datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc))

    assert _titles(db, dateFrom='2026-02-01') == ['Feb', 'Mar']
    assert _titles(db, dateTo='2026-01-31') == ['Jan']
    assert _titles(db, dateFrom='2026-02-01', dateTo='2026-02-28') == ['Feb']


def test_list_endpoint_reports_filter_state(client, db, headers):
    make_issue(db, title='Pothole', status=IssueStatus.in_progress)
    make_issue(db, title='Other')
    resp = client.get('/admin/issues', params={'status': 'in_progress', 'category': 'nope'}, headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert [i['title'] for i in data['items']] == ['Pothole']
    assert data['total'] == 1
    assert data['active_filter_count'] == 1
    assert data['location'] == '/admin/issues?status=in_progress'
    assert data['departments'] == ['Public Works']
    assert [a['full_name'] for a in data['admin_users']] == ['Alex Admin']


def test_apply_and_clear_redirect(client, headers):
    resp = client.post('/admin/issues/filters', json={'status': 'resolved', 'search': 'lamp', 'priority': 'all'},
                       headers=headers, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers['location'] == '/admin/issues?search=lamp&status=resolved'

    resp = client.post('/admin/issues/filters/clear', headers=headers, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers['location'] == '/admin/issues'


def test_list_ignores_non_ascii_digit_assignee(client, db, headers):
    make_issue(db, title='Only')
    resp = client.get('/admin/issues', params={'assignedTo': '²'}, headers=headers)
    assert resp.status_code == 200
    assert [i['title'] for i in resp.json()['items']] == ['Only']
    assert resp.json()['active_filter_count'] == 0
