from pydantic import BaseModel, Field
from fastapi import Query


class BaseFilter(BaseModel):
    page: int = Field(default=1, ge=1, description="Page number (starts from 1)")
    limit: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_base_filter(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
) -> BaseFilter:
    return BaseFilter(page=page, limit=limit)
