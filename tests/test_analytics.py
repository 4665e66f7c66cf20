from datetime import datetime, timedelta, timezone
from cityreport.models.issue import IssueCategory, IssueStatus
from cityreport.services import analytics
from tests.factories import make_department, make_issue

NOW = datetime(2026, 8, 31, 12, 0, tzinfo=timezone.utc)


def test_months_ago_clamps_day_and_crosses_year():
    assert analytics.months_ago(NOW, 6) == datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc)
    assert analytics.months_ago(datetime(2026, 3, 15, tzinfo=timezone.utc), 6) == datetime(2025, 9, 15, tzinfo=timezone.utc)


def test_reports_buckets_and_resolution_time(db):
    make_issue(db, created_at=datetime(2026, 7, 1, tzinfo=timezone.utc), status=IssueStatus.resolved,
               resolved_at=datetime(2026, 7, 2, 6, 0, tzinfo=timezone.utc))
    make_issue(db, created_at=datetime(2026, 7, 10, tzinfo=timezone.utc), status=IssueStatus.resolved,
               resolved_at=datetime(2026, 7, 13, tzinfo=timezone.utc))
    make_issue(db, created_at=datetime(2026, 8, 5, tzinfo=timezone.utc), assigned_department=None)
    # outside the six-month window
    make_issue(db, created_at=datetime(2025, 12, 1, tzinfo=timezone.utc), category=IssueCategory.traffic,
               assigned_department='Transportation')

    data = analytics.reports(db, now=NOW)
    assert data['monthly_stats'] == {
        '2026-07': {'total': 2, 'resolved': 2},
        '2026-08': {'total': 1, 'resolved': 0},
    }
    # 1.25 days -> 2, 3 days -> 3, mean 2.5 rounds up
    assert data['avg_resolution_days'] == 3
    assert data['department_stats'] == {'Public Works': 2, 'Transportation': 1, 'Unassigned': 1}
    assert data['total_issues'] == 3
    assert data['resolved_issues'] == 2


def test_reports_empty(db):
    data = analytics.reports(db, now=NOW)
    assert data['avg_resolution_days'] == 0
    assert data['monthly_stats'] == {}
    assert data['department_stats'] == {}


def test_dashboard_endpoint(client, db, headers):
    make_issue(db, status=IssueStatus.in_progress)
    make_issue(db, category=IssueCategory.streetlight, assigned_department='Utilities',
               created_at=datetime.now(timezone.utc) - timedelta(days=1))
    data = client.get('/admin', headers=headers).json()
    assert data['total_issues'] == 2
    assert data['status_counts'] == {'in_progress': 1, 'submitted': 1}
    assert data['category_counts'] == {'pothole': 1, 'streetlight': 1}
    assert data['recent_issues'][0]['status'] == 'in_progress'
    assert data['admin']['full_name'] == 'Alex Admin'

    assert client.get('/admin/reports', headers=headers).json()['total_issues'] == 2


def test_departments_and_active_admins(client, db, headers):
    make_department(db, 'Utilities', description='Street lighting')
    make_department(db, 'Public Works')
    names = [d['name'] for d in client.get('/admin/departments', headers=headers).json()]
    assert names == ['Public Works', 'Utilities']

    users = client.get('/admin/users/active', headers=headers).json()
    assert [(u['full_name'], u['role'], u['is_active']) for u in users] == [('Alex Admin', 'admin', True)]


def test_months_ago_keeps_day_when_target_month_has_it():
    assert analytics.months_ago(datetime(2026, 7, 30, tzinfo=timezone.utc), 6) == datetime(2026, 1, 30, tzinfo=timezone.utc)
    assert analytics.months_ago(datetime(2028, 8, 31, tzinfo=timezone.utc), 6) == datetime(2028, 2, 29, tzinfo=timezone.utc)


def test_average_resolution_rounds_half_up(db):
    start = datetime(2026, 6, 1, tzinfo=timezone.utc)
    for days in (2, 3):
        make_issue(db, created_at=start, status=IssueStatus.resolved, resolved_at=start + timedelta(days=days))
    assert analytics.reports(db, now=NOW)['avg_resolution_days'] == 3
