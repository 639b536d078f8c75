"""Grounded answer composition."""

from __future__ import annotations

from docchat.core.errors import GenerationError, ValidationError
from docchat.core.logging import get_logger
from docchat.core.prompts import FALLBACK_ANSWER, build_answer_prompt
from docchat.models.documents import RetrievedContext
from docchat.services.generator import TextGenerator

logger = get_logger(__name__)


class AnswerComposer:
    """Asks the model once per question, with the retrieved chunks as its only source.

    An empty context still goes to the model, which answers with the fallback
    sentence exactly as it does for irrelevant context.
    """

    def __init__(self, generator: TextGenerator, *, fallback_answer: str = FALLBACK_ANSWER) -> None:
        self._generator = generator
        self.fallback_answer = fallback_answer

    def close(self) -> None:
        """Release the generator's connections, if it holds any."""
        close = getattr(self._generator, "close", None)
        if close is not None:
            close()

    def build_prompt(self, query_text: str, context: RetrievedContext) -> str:
        return build_answer_prompt(query_text, context.texts(), fallback=self.fallback_answer)

    def compose(self, query_text: str, context: RetrievedContext) -> str:
        if not query_text or not query_text.strip():
            raise ValidationError("Question must not be empty.")

        prompt = self.build_prompt(query_text, context)
        try:
            answer = self._generator.generate(prompt)
        except GenerationError:
            raise
        except Exception as exc:
            logger.error("Generation failed - %s: %s", type(exc).__name__, exc)
            raise GenerationError(f"Generation failed: {type(exc).__name__}") from exc

        answer = (answer or "").strip()
        if not answer:
            raise GenerationError("Generation returned an empty response.")

        logger.info("Composed answer from %d context chunks", len(context))
        return answer
