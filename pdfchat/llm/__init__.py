"""LLM client module."""

from pdfchat.llm.client import LLMClient, OpenAICompatibleClient
from pdfchat.llm.models import GenerationResult, Message, Role
from pdfchat.llm.prompts import CONTEXT_SEPARATOR, RAGPromptTemplate

__all__ = [
    "CONTEXT_SEPARATOR",
    "GenerationResult",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "RAGPromptTemplate",
    "Role",
]
