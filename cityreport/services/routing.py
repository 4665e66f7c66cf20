# cityreport/services/routing.py
from cityreport.models.issue import IssueCategory

DEFAULT_DEPARTMENT = "Public Works"

DEPARTMENT_BY_CATEGORY = {
    IssueCategory.pothole.value: "Public Works",
    IssueCategory.streetlight.value: "Utilities",
    IssueCategory.sanitation.value: "Sanitation",
    IssueCategory.traffic.value: "Transportation",
    IssueCategory.vandalism.value: "Code Enforcement",
}

def department_for_category(category) -> str:
    """Department that owns a category; unknown categories go to Public Works."""
    key = category.value if isinstance(category, IssueCategory) else category
    return DEPARTMENT_BY_CATEGORY.get(key, DEFAULT_DEPARTMENT)
