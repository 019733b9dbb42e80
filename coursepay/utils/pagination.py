from sqlalchemy import func
from sqlmodel import Session, select


def paginate(
    *,
    session: Session,
    query,
    page: int = 1,
    limit: int = 10,
) -> dict:
    """Run `query` for one page; `results` holds whatever the query selects."""
    page = max(page, 1)
    limit = limit if limit > 0 else 10

    total = session.exec(
        select(func.count()).select_from(query.order_by(None).subquery())
    ).one()

    results = session.exec(
        query.offset((page - 1) * limit).limit(limit)
    ).all()

    return {
        "total_items": total,
        "total_pages": (total + limit - 1) // limit,
        "current_page": page,
        "limit": limit,
        "results": list(results),
    }
