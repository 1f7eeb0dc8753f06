from fastapi import HTTPException, status

from backend.validation import Violation

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def raise_for_violations(violations: list[Violation]) -> None:
    if violations:
        raise HTTPException(
            status_code=422,
            detail={'violations': [violation.to_dict() for violation in violations]},
        )


def column_values(instance) -> dict:
    return {column.name: getattr(instance, column.name) for column in instance.__table__.columns}
