"""Prompt template for grounded answers."""

from typing import Any

CONTEXT_SEPARATOR = "\n\n"


class RAGPromptTemplate:
    """Builds the system and user prompts for answer synthesis.

    The system prompt confines the model to the supplied context; the user
    prompt carries the context followed by the question.
    """

    DEFAULT_SYSTEM_PROMPT = """You answer questions about documents the user uploaded.

Rules:
- Use ONLY the information in the provided context
- If the context does not contain the answer, say that you don't know
- Do not make up facts, names, or numbers
- Be concise and direct"""

    DEFAULT_USER_TEMPLATE = """Context:
{context}

Question: {question}

Helpful answer:"""

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format the user template; needs ``context`` and ``question``."""
        return self.user_template.format(**kwargs)

    def format_context(
        self,
        chunks: list[str],
        separator: str = CONTEXT_SEPARATOR,
    ) -> str:
        """Join chunk texts, in the order given, into one context string."""
        return separator.join(chunks)

    def build_prompt(
        self,
        question: str,
        context: str,
    ) -> tuple[str, str]:
        """Build the prompt pair.

        Returns:
            Tuple of (system_prompt, user_prompt).
        """
        user_prompt = self.format(context=context, question=question)
        return self.system_prompt, user_prompt
