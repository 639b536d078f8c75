"""Instruction template for grounded answers."""

FALLBACK_ANSWER = "I could not find the answer to that in your uploaded documents."

# Separates retrieved chunks inside the context block.
CONTEXT_SEPARATOR = "\n\n---\n\n"

ANSWER_PROMPT_TEMPLATE = """You are an assistant that answers questions about documents the user has uploaded.

Rules:
- Answer using ONLY the information in the context below.
- If the context does not contain the answer, reply with exactly this sentence and nothing else: "{fallback}"
- Do not invent facts, names, numbers or quotes that are not in the context.

Context:
{context}

Question: {question}

Answer:"""


def build_context_block(texts: list[str]) -> str:
    """Join chunk texts, in retrieval order, into a single context block."""
    return CONTEXT_SEPARATOR.join(text.strip() for text in texts)


def build_answer_prompt(question: str, texts: list[str], fallback: str = FALLBACK_ANSWER) -> str:
    return ANSWER_PROMPT_TEMPLATE.format(
        fallback=fallback,
        context=build_context_block(texts),
        question=question.strip(),
    )
