import math

from pydantic import BaseModel


class PageMeta(BaseModel):
    Page: int
    Limit: int
    Total: int
    TotalPages: int


def Paginate(query, page: int, limit: int) -> tuple[list, PageMeta]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    meta = PageMeta(
        Page=page,
        Limit=limit,
        Total=total,
        TotalPages=math.ceil(total / limit) if total else 0,
    )
    return items, meta
