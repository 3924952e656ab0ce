"""LangGraph state definition for the chapter pipeline.

One ChapterState flows through analyze -> record_glossary -> translate ->
write_output. Nodes return partial updates; a node that fails sets
``status`` to FAILED and ``failure``, and the router ends the graph.
"""

import operator
from typing import Annotated, Any, TypedDict

from chapterflow.models.chapter import ChapterRecord, GlossarySnapshot
from chapterflow.models.schemas import ChapterFailure, ChapterStatus


class ChapterState(TypedDict, total=False):
    """State for one chapter's two-pass run.

    Fields:
        chapter: Source chapter being processed
        prev_summary: Summary handed over from the previous chapter
        previous_merged: Merged glossary as of the previous chapter
        previous_first_seen: First-seen chapter per term as of the previous chapter
        status: Current state machine position
        transitions: Every state entered so far, in order
        summary: Summary produced by the analysis pass
        new_terms: Terms extracted by the analysis pass
        merged: Glossary after merging new_terms
        snapshot: Snapshot persisted for this chapter
        translated_text: Output of the translation pass
        failure: Set when status is FAILED
    """

    chapter: ChapterRecord
    prev_summary: str
    previous_merged: dict[str, str]
    previous_first_seen: dict[str, str]
    status: ChapterStatus
    transitions: Annotated[list[ChapterStatus], operator.add]
    summary: str
    new_terms: dict[str, str]
    merged: dict[str, str]
    snapshot: GlossarySnapshot | None
    translated_text: str
    failure: ChapterFailure | None


def create_initial_state(
    chapter: ChapterRecord,
    prev_summary: str = "",
    previous_merged: dict[str, str] | None = None,
    previous_first_seen: dict[str, Any] | None = None,
) -> ChapterState:
    """Create the Pending state for a chapter.

    Args:
        chapter: Loaded source chapter
        prev_summary: Previous chapter's summary ("" when starting fresh)
        previous_merged: Merged glossary to build on
        previous_first_seen: First-seen bookkeeping to build on

    Returns:
        Initialized ChapterState
    """
    return ChapterState(
        chapter=chapter,
        prev_summary=prev_summary or "",
        previous_merged=dict(previous_merged or {}),
        previous_first_seen=dict(previous_first_seen or {}),
        status=ChapterStatus.PENDING,
        transitions=[ChapterStatus.PENDING],
        snapshot=None,
        failure=None,
    )
