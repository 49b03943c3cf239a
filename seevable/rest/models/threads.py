from pydantic import BaseModel
from typing import Optional


class CreateThreadRequest(BaseModel):
    name: Optional[str] = None


class UpdateThreadRequest(BaseModel):
    name: str


class SwitchThreadRequest(BaseModel):
    thread_id: str


class CurrentThreadRef(BaseModel):
    thread_id: Optional[str] = None
