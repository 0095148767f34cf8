"""
Test suite for RAG prompt assembly.

System role: Verification of generator prompt formatting
"""

from notegraph.core.rag_prompt import build_rag_prompt, format_context
from notegraph.models.rag import RagContextSnippet


def _snippet(work_id: str, title: str, text: str) -> RagContextSnippet:
    return RagContextSnippet(work_id=work_id, title=title, snippet=text, score=0.9)


class TestFormatContext:
    """Test suite for format_context()."""

    def test_should_number_blocks_in_order(self) -> None:
        # Act
        rendered = format_context([
            _snippet("WORK-1", "Budget review", "Q3 budget approved"),
            _snippet("WORK-2", "Hiring plan", "Two new roles"),
        ])

        # Assert
        assert rendered.index("[Context 1]") < rendered.index("[Context 2]")
        assert "Work note: Budget review (ID: WORK-1)" in rendered
        assert "\n---\n" in rendered


class TestBuildRagPrompt:
    """Test suite for build_rag_prompt()."""

    def test_should_include_question_and_context(self) -> None:
        # Act
        prompt = build_rag_prompt(
            "Was the budget approved?",
            [_snippet("WORK-1", "Budget review", "Q3 budget approved")],
        )

        # Assert
        assert "Question: Was the budget approved?" in prompt
        assert "Q3 budget approved" in prompt
