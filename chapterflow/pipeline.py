"""Chapter pipeline - the two-pass state machine for one chapter.

Pipeline Architecture
=====================

```mermaid
graph LR
    A[analyze] -->|ok| B[record_glossary]
    A -->|failed| E[END]
    B -->|ok| C[translate]
    B -->|failed| E
    C -->|ok| D[write_output]
    C -->|failed| E
    D --> E
```

State Flow:
- analyze: Pending -> Analyzing -> AnalysisDone (summary + new terms)
- record_glossary: merge new terms, persist the chapter's snapshot
- translate: AnalysisDone -> Translating, translate with summary + glossary
- write_output: persist the translation, Translating -> Done

Chapter-level errors (provider, malformed response, write, missing
chapter) end the graph with status FAILED. The output file is the last
thing written, so a failed chapter never looks complete to the
progress scanner. TemplateError is not caught: a broken template
fails every chapter and aborts the run.

Nodes return their state changes as partial updates, so each node also
appends the states it passed through to ``transitions`` (reduced with
``operator.add``). The full path, e.g. pending -> analyzing ->
analysis_done -> translating -> done, is reported on ChapterOutcome.
"""

import json
import logging

from langgraph.graph import END, START, StateGraph

from chapterflow.errors import (
    ChapterReadError,
    MalformedResponseError,
    NotFoundError,
    ProviderError,
    WriteError,
)
from chapterflow.llm_client import LLMClient
from chapterflow.models import (
    AnalysisParseFailure,
    ChapterFailure,
    ChapterOutcome,
    ChapterRecord,
    ChapterResult,
    ChapterState,
    ChapterStatus,
    create_initial_state,
)
from chapterflow.settings import RunConfig
from chapterflow.storage import GlossaryLedger, OutputStore
from chapterflow.utils.json_extract import parse_analysis_response
from chapterflow.utils.template import render_template

logger = logging.getLogger(__name__)

# Errors that fail one chapter (and stop the run) without aborting the process
CHAPTER_ERRORS = (
    NotFoundError,
    ChapterReadError,
    MalformedResponseError,
    WriteError,
    ProviderError,
)


def glossary_json(terms: dict[str, str]) -> str:
    """Serialize a glossary for prompt context, keeping non-ASCII text."""
    return json.dumps(terms, ensure_ascii=False)


def _failed(
    state: ChapterState,
    error: Exception,
    stage: ChapterStatus,
    entered: tuple[ChapterStatus, ...] = (),
) -> dict:
    chapter_id = state["chapter"].id
    failure = ChapterFailure.from_exception(error, chapter_id, stage)
    logger.error(f"Chapter {chapter_id} failed during {stage.value}: {error}")
    return {
        "status": ChapterStatus.FAILED,
        "failure": failure,
        "transitions": [*entered, ChapterStatus.FAILED],
    }


def _route(state: ChapterState) -> str:
    """Route to END once a node has marked the chapter failed."""
    return "failed" if state.get("status") == ChapterStatus.FAILED else "continue"


class ChapterPipeline:
    """Runs one chapter through analysis and translation."""

    def __init__(
        self,
        client: LLMClient,
        ledger: GlossaryLedger,
        outputs: OutputStore,
        analysis_prompt: str,
        translation_prompt: str,
        target_language: str,
        summary_len: int,
        glossary_limit: int,
    ):
        self.client = client
        self.ledger = ledger
        self.outputs = outputs
        self.analysis_prompt = analysis_prompt
        self.translation_prompt = translation_prompt
        self.target_language = target_language
        self.summary_len = summary_len
        self.glossary_limit = glossary_limit
        self._graph = self.build_graph().compile()

    @classmethod
    def from_config(
        cls,
        config: RunConfig,
        client: LLMClient,
        ledger: GlossaryLedger,
        outputs: OutputStore,
    ) -> "ChapterPipeline":
        return cls(
            client=client,
            ledger=ledger,
            outputs=outputs,
            analysis_prompt=config.prompts.analysis_prompt,
            translation_prompt=config.prompts.translation_prompt,
            target_language=config.translation.target_language,
            summary_len=config.constraints.max_summary_length,
            glossary_limit=config.constraints.max_dictionary_size,
        )

    def build_graph(self) -> StateGraph:
        """Build the per-chapter StateGraph (uncompiled)."""
        graph = StateGraph(ChapterState)
        graph.add_node("analyze", self.analyze)
        graph.add_node("record_glossary", self.record_glossary)
        graph.add_node("translate", self.translate)
        graph.add_node("write_output", self.write_output)

        graph.add_edge(START, "analyze")
        graph.add_conditional_edges(
            "analyze", _route, {"continue": "record_glossary", "failed": END}
        )
        graph.add_conditional_edges(
            "record_glossary", _route, {"continue": "translate", "failed": END}
        )
        graph.add_conditional_edges(
            "translate", _route, {"continue": "write_output", "failed": END}
        )
        graph.add_edge("write_output", END)
        return graph

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def analyze(self, state: ChapterState) -> dict:
        """Analysis pass: summary and new terms for the chapter."""
        chapter = state["chapter"]
        logger.info(f"[{chapter.id}] Pass 1: analyzing text and extracting terms")

        prompt = render_template(
            self.analysis_prompt,
            {
                "target_lang": self.target_language,
                "summary_len": self.summary_len,
                "glossary_limit": self.glossary_limit,
                "prev_summary": state.get("prev_summary", ""),
                "existing_glossary": glossary_json(state.get("previous_merged", {})),
                "chapter_id": chapter.id,
            },
            "analysis_prompt",
        )

        try:
            raw = self.client.complete(prompt, chapter.text)
        except ProviderError as e:
            return _failed(
                state, e, ChapterStatus.ANALYZING, entered=(ChapterStatus.ANALYZING,)
            )

        outcome = parse_analysis_response(raw)
        if isinstance(outcome, AnalysisParseFailure):
            error = MalformedResponseError(
                f"Analysis response for chapter {chapter.id} is not valid JSON "
                f"({outcome.reason})",
                raw_text=outcome.raw_text,
            )
            return _failed(
                state, error, ChapterStatus.ANALYZING, entered=(ChapterStatus.ANALYZING,)
            )

        return {
            "status": ChapterStatus.ANALYSIS_DONE,
            "summary": outcome.summary,
            "new_terms": outcome.new_glossary,
            "transitions": [ChapterStatus.ANALYZING, ChapterStatus.ANALYSIS_DONE],
        }

    def record_glossary(self, state: ChapterState) -> dict:
        """Merge the new terms and persist this chapter's snapshot."""
        chapter = state["chapter"]
        merged, snapshot = self.ledger.apply_new_terms(
            chapter.id,
            state.get("new_terms", {}),
            state.get("previous_merged", {}),
            summary=state.get("summary", ""),
            previous_first_seen=state.get("previous_first_seen", {}),
        )

        try:
            self.ledger.persist(snapshot)
        except WriteError as e:
            return _failed(state, e, ChapterStatus.ANALYSIS_DONE)

        return {"merged": merged, "snapshot": snapshot}

    def translate(self, state: ChapterState) -> dict:
        """Translation pass, conditioned on summary and merged glossary."""
        chapter = state["chapter"]
        logger.info(f"[{chapter.id}] Pass 2: translating")

        prompt = render_template(
            self.translation_prompt,
            {
                "target_lang": self.target_language,
                "summary": state.get("summary", ""),
                "glossary": glossary_json(state.get("merged", {})),
                "chapter_id": chapter.id,
            },
            "translation_prompt",
        )

        try:
            translated = self.client.complete(prompt, chapter.text)
        except ProviderError as e:
            return _failed(
                state, e, ChapterStatus.TRANSLATING, entered=(ChapterStatus.TRANSLATING,)
            )

        # Some models return escaped newlines
        translated = translated.replace("\\n", "\n")
        if not translated.strip():
            error = MalformedResponseError(
                f"Translation response for chapter {chapter.id} is empty",
                raw_text=translated,
            )
            return _failed(
                state, error, ChapterStatus.TRANSLATING, entered=(ChapterStatus.TRANSLATING,)
            )

        return {
            "status": ChapterStatus.TRANSLATING,
            "translated_text": translated,
            "transitions": [ChapterStatus.TRANSLATING],
        }

    def write_output(self, state: ChapterState) -> dict:
        """Persist the translation; only now is the chapter Done."""
        try:
            self.outputs.write(state["chapter"].id, state["translated_text"])
        except WriteError as e:
            return _failed(state, e, ChapterStatus.TRANSLATING)
        return {"status": ChapterStatus.DONE, "transitions": [ChapterStatus.DONE]}

    # ------------------------------------------------------------------

    def process(
        self,
        chapter: ChapterRecord,
        prev_summary: str = "",
        previous_merged: dict[str, str] | None = None,
        previous_first_seen: dict[str, str] | None = None,
    ) -> ChapterOutcome:
        """Run a chapter from Pending to Done or Failed.

        Args:
            chapter: Loaded source chapter
            prev_summary: Previous chapter's summary ("" when starting fresh)
            previous_merged: Merged glossary as of the previous chapter
            previous_first_seen: First-seen bookkeeping as of the previous chapter

        Returns:
            ChapterOutcome with the result (Done) or failure (Failed)

        Raises:
            TemplateError: If a prompt template is broken
        """
        initial = create_initial_state(
            chapter,
            prev_summary=prev_summary,
            previous_merged=previous_merged,
            previous_first_seen=previous_first_seen,
        )
        final = self._graph.invoke(initial)

        status = final.get("status", ChapterStatus.PENDING)
        if status != ChapterStatus.DONE:
            return ChapterOutcome(
                chapter_id=chapter.id,
                status=ChapterStatus.FAILED,
                snapshot=final.get("snapshot"),
                failure=final.get("failure"),
                transitions=list(final.get("transitions", [])),
            )

        result = ChapterResult(
            chapter_id=chapter.id,
            summary=final["summary"],
            new_terms=dict(final.get("new_terms", {})),
            translated_text=final["translated_text"],
        )
        return ChapterOutcome(
            chapter_id=chapter.id,
            status=ChapterStatus.DONE,
            result=result,
            snapshot=final.get("snapshot"),
            transitions=list(final.get("transitions", [])),
        )
