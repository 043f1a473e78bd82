from datetime import date
from typing import Literal
from pydantic import BaseModel, Field, field_validator, model_validator

from app.features.ai.prompts import ScheduleAction
from app.features.ai.insights import DashboardAction, DashboardMetrics, ReportAction, ReportMetrics
from app.features.ai.provider import ChatTurn


class ScheduleAssistRequest(BaseModel):
    action: ScheduleAction
    prompt: str | None = None
    start: date
    end: date

    @model_validator(mode="after")
    def check_range(self):
        if self.start > self.end:
            raise ValueError("start must be on or before end")
        return self


class ScheduleAssistResponse(BaseModel):
    action: ScheduleAction
    content: str
    model: str
    tokens_used: int


class DashboardInsightRequest(BaseModel):
    action: DashboardAction


class DashboardInsightResponse(BaseModel):
    action: DashboardAction
    content: str
    model: str
    tokens_used: int
    metrics: DashboardMetrics


class ReportInsightRequest(BaseModel):
    action: ReportAction
    start: date
    end: date

    @model_validator(mode="after")
    def check_range(self):
        if self.start > self.end:
            raise ValueError("start must be on or before end")
        return self


class ReportInsightResponse(BaseModel):
    action: ReportAction
    content: str
    model: str
    tokens_used: int
    metrics: ReportMetrics


class ChatMessage(ChatTurn):
    role: Literal["user", "assistant"]
    content: str = Field(max_length=4000)


class ChatRequest(BaseModel):
    message: str = Field(max_length=4000)
    history: list[ChatMessage] = []

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message is required")
        return value.strip()


class ChatResponse(BaseModel):
    content: str
    model: str
    tokens_used: int
