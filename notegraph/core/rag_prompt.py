"""
RAG answer prompt.

Defines the prompt template handed to the text generator once retrieval
has produced at least one context snippet.

Dependencies: langchain_core.prompts
System role: Prompt template for work-note question answering
"""

from typing import Sequence

from langchain_core.prompts import PromptTemplate

from notegraph.models.rag import RagContextSnippet

NO_RESULTS_ANSWER = (
    "No related work notes were found. Try rephrasing the question."
)

RAG_PROMPT = PromptTemplate.from_template(
    """You are an assistant that answers questions about work notes.

Answer the user's question using the context below.
If the context does not contain the answer, say so.

{context}

---

Question: {question}

Keep the answer concise and reference specific work notes where possible."""
)


def format_context(contexts: Sequence[RagContextSnippet]) -> str:
    """Render context snippets as numbered blocks separated by rules."""
    blocks = [
        f"[Context {index}]\n"
        f"Work note: {ctx.title} (ID: {ctx.work_id})\n"
        f"Content:\n{ctx.snippet}\n"
        for index, ctx in enumerate(contexts, start=1)
    ]
    return "\n---\n".join(blocks)


def build_rag_prompt(question: str, contexts: Sequence[RagContextSnippet]) -> str:
    """
    Assemble the generator prompt.

    Args:
        question: User question
        contexts: Retrieved snippets, best first

    Returns:
        str: Prompt text
    """
    return RAG_PROMPT.format(context=format_context(contexts), question=question)
