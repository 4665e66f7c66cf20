import pytest
from cityreport.models.issue import IssueCategory
from cityreport.services.routing import department_for_category


@pytest.mark.parametrize('category,department', [
    ('pothole', 'Public Works'),
    ('streetlight', 'Utilities'),
    ('sanitation', 'Sanitation'),
    ('traffic', 'Transportation'),
    ('vandalism', 'Code Enforcement'),
    ('other', 'Public Works'),
])
def test_category_routes_to_department(category, department):
    assert department_for_category(category) == department
    assert department_for_category(IssueCategory(category)) == department


def test_unknown_category_falls_back_to_public_works():
    assert department_for_category('flooding') == 'Public Works'
