#  Site Server - Pydantic Schemas
#
#  Response models for the built-in API routes and the error body.
#
#  Depends on: (none)
#  Used by:    routes/api.py, errors.py

from pydantic import BaseModel


class ErrorOut(BaseModel):
    message: str


class HealthOut(BaseModel):
    status: str
    phase: str
