"""Field-level checks run at the API boundary before anything is persisted.

Each ``validate_*`` function takes the merged field values of one entity and
returns every problem it finds, so a client can fix them all in one round
trip. An empty list means the entity may be saved.

Fields stored as NOT NULL may be left out of a create payload and fall back
to their column default, but an explicit ``None`` for one of them is always
a violation.
"""

from dataclasses import asdict, dataclass

from backend.models.collaborator import INVITE_TYPES
from backend.models.expense import EXPENSE_CATEGORIES
from backend.models.project import PROJECT_STATUSES
from backend.models.review import EVALUATION_SCORES, RECOMMENDATIONS, SCORE_RANGE
from backend.models.user import ACADEMIC_ROLES, RESEARCH_EXPERIENCE_LEVELS, ROLES


@dataclass(frozen=True)
class Violation:
    field: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require_text(data: dict, fields: dict[str, str]) -> list[Violation]:
    return [
        Violation(field, f'{label} is required.')
        for field, label in fields.items()
        if _blank(data.get(field))
    ]


def _reject_null(data: dict, fields: dict[str, str]) -> list[Violation]:
    return [
        Violation(field, f'{label} cannot be null.')
        for field, label in fields.items()
        if field in data and data[field] is None
    ]


def _require_choice(data: dict, field: str, label: str, choices, required: bool = False) -> list[Violation]:
    value = data.get(field)
    if value is None:
        return [Violation(field, f'{label} is required.')] if required else []
    if value not in choices:
        return [Violation(field, f'{label} must be one of: {", ".join(choices)}.')]
    return []


def validate_signup(data: dict) -> list[Violation]:
    violations = _require_choice(data, 'role', 'Role', ROLES, required=True)
    violations += _require_choice(data, 'academic_role', 'Academic role', ACADEMIC_ROLES)
    violations += _require_choice(
        data, 'research_experience', 'Research experience', RESEARCH_EXPERIENCE_LEVELS
    )
    return violations


def validate_project(data: dict) -> list[Violation]:
    violations = _require_text(data, {
        'title': 'Project title',
        'description': 'Description',
        'research_goals': 'Research goals',
        'research_area': 'Research area',
    })

    start_date = data.get('start_date')
    end_date = data.get('end_date')
    if start_date is None:
        violations.append(Violation('start_date', 'Start date is required.'))
    if end_date is None:
        violations.append(Violation('end_date', 'End date is required.'))
    if start_date is not None and end_date is not None and end_date < start_date:
        violations.append(Violation('end_date', 'End date cannot be before the start date.'))

    funding_amount = data.get('funding_amount')
    if funding_amount is not None and funding_amount < 0:
        violations.append(Violation('funding_amount', 'Funding amount cannot be negative.'))

    violations += _reject_null(data, {
        'funding_available': 'Funding available',
        'collaborators_needed': 'Collaborators needed',
        'status': 'Status',
    })
    violations += _require_choice(data, 'status', 'Status', PROJECT_STATUSES)
    return violations


def validate_grant(data: dict) -> list[Violation]:
    violations = _require_text(data, {'grant_title': 'Grant title', 'funder': 'Funder'})

    awarded = data.get('awarded')
    if awarded is None:
        violations.append(Violation('awarded', 'Awarded amount is required.'))
    elif awarded < 0:
        violations.append(Violation('awarded', 'Awarded amount cannot be negative.'))

    spent = data.get('spent')
    if spent is not None and spent < 0:
        violations.append(Violation('spent', 'Spent amount cannot be negative.'))

    if data.get('end_date') is None:
        violations.append(Violation('end_date', 'End date is required.'))

    violations += _reject_null(data, {'spent': 'Spent amount', 'status': 'Status'})
    return violations


def validate_expense(data: dict) -> list[Violation]:
    violations = _require_text(data, {'description': 'Description'})

    amount = data.get('amount')
    if amount is None:
        violations.append(Violation('amount', 'Amount is required.'))
    elif amount <= 0:
        violations.append(Violation('amount', 'Amount must be greater than zero.'))

    if data.get('date') is None:
        violations.append(Violation('date', 'Date is required.'))

    violations += _reject_null(data, {'category': 'Category', 'status': 'Status'})
    violations += _require_choice(data, 'category', 'Category', EXPENSE_CATEGORIES)
    return violations


def validate_funder(data: dict) -> list[Violation]:
    violations = _require_text(data, {'funder': 'Funder'})

    amount = data.get('amount')
    if amount is None:
        violations.append(Violation('amount', 'Amount is required.'))
    elif amount < 0:
        violations.append(Violation('amount', 'Amount cannot be negative.'))

    if data.get('end_date') is None:
        violations.append(Violation('end_date', 'End date is required.'))

    violations += _reject_null(data, {'status': 'Status'})
    return violations


def validate_invite(data: dict) -> list[Violation]:
    violations = _require_choice(data, 'type', 'Type', INVITE_TYPES, required=True)
    if data.get('receiver_id') is not None and data.get('receiver_id') == data.get('sender_id'):
        violations.append(Violation('receiver_id', 'You cannot invite yourself.'))
    return violations


def validate_evaluation(data: dict) -> list[Violation]:
    low, high = SCORE_RANGE
    violations = []
    for field in EVALUATION_SCORES:
        label = field.replace('_', ' ').capitalize()
        score = data.get(field)
        if score is None:
            violations.append(Violation(field, f'{label} score is required.'))
        elif not low <= score <= high:
            violations.append(Violation(field, f'{label} score must be between {low} and {high}.'))

    violations += _require_text(data, {'comments': 'Comments'})
    violations += _require_choice(data, 'recommendation', 'Recommendation', RECOMMENDATIONS, required=True)
    return violations
