from pydantic import BaseModel


class MessageOut(BaseModel):
    message: str


class Pagination(BaseModel):
    total: int
    pages: int
    page: int
    limit: int
