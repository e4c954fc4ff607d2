from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str


class ChatAnswer(BaseModel):
    text: str
    sources: list[str] = Field(default_factory=list)
