from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChatRequest(BaseModel):
    filename: str = Field(min_length=1)
    question: str = Field(min_length=1)


class ChatResponse(BaseModel):
    answer: str


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatHistoryResponse(BaseModel):
    messages: list[ChatMessage]


class SummaryResponse(BaseModel):
    summary: str


class QuizResponse(BaseModel):
    """Raw model output; parsing happens on the consuming side."""
    quiz: str


class QuizQuestion(BaseModel):
    """A single quiz question, mcq (4 options) or true_false (2 options)."""
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: list[str] = Field(min_length=1)
    correct_answer: int = Field(0, alias="correctAnswer")
    explanation: str = ""
    type: Literal["mcq", "true_false"] = "mcq"

    @model_validator(mode="after")
    def check_answer_in_bounds(self):
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError("correctAnswer must index into options")
        return self
