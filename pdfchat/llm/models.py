"""LLM data models."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in a chat completion request."""

    SYSTEM = "system"
    USER = "user"


class Message(BaseModel):
    """A chat message."""

    role: Role = Field(description="Message role")
    content: str = Field(description="Message content")


class GenerationResult(BaseModel):
    """Result from one chat completion.

    Attributes:
        content: Generated text; empty when the model returned no content.
        model: Model that produced the completion.
        finish_reason: Why generation stopped ("stop", "length", ...).
        prompt_tokens: Number of tokens in the prompt.
        completion_tokens: Number of tokens in the completion.
        total_tokens: Total tokens used.
    """

    content: str = Field(default="", description="Generated text")
    model: str = Field(description="Model used")
    finish_reason: str | None = Field(default=None, description="Stop reason")
    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()
