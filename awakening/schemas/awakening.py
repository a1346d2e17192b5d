from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional

from awakening.models.archetype import ArchetypeResult, Category, QuizAnswer, Strategy


class QuizAnswerOption(BaseModel):
    index: int
    text: str


class QuizQuestionResponse(BaseModel):
    id: int
    question: str
    answers: list[QuizAnswerOption]


class SessionCreatedResponse(BaseModel):
    session_id: str


class AnswerSubmit(BaseModel):
    question_id: int = Field(ge=1)
    answer_index: int = Field(ge=0)


class AnswerRecordedResponse(BaseModel):
    question_id: int
    answer_text: str
    answered: int
    quiz_completed: bool


class ArchetypeResolveRequest(BaseModel):
    answers: list[QuizAnswer] = Field(min_length=1)


class ResolutionOutcomeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    archetype: ArchetypeResult
    strategy_used: Strategy
    attempts: int


class ProphecyResolveRequest(BaseModel):
    category: Category

    @field_validator("category", mode="before")
    @classmethod
    def _accept_key_or_label(cls, v: Any) -> Any:
        return Category.parse(v) or v


class ProphecyResponse(BaseModel):
    type: Category
    prophecy: str
    strategy: Optional[str] = None


class SessionAnswerView(BaseModel):
    question_id: int
    answer_text: str


class SessionStateResponse(BaseModel):
    session_id: str
    answers: list[SessionAnswerView]
    quiz_completed: bool
    archetype: Optional[ArchetypeResult] = None
    strategy_used: Optional[Strategy] = None
    attempts: int = 0
    prophecy: Optional[str] = None
    prophecy_strategy: Optional[str] = None
