from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field


class SubjectIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    standard: int
    subjectname: str = Field(min_length=1, max_length=255)
    board: str = Field(min_length=1, max_length=100)


class SubjectRef(BaseModel):
    """A subject addressed by its (subject, standard, board) triple."""
    model_config = ConfigDict(str_strip_whitespace=True)

    standard: int
    subject: str = Field(min_length=1)
    board: str = Field(min_length=1)
