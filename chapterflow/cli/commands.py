"""CLI command implementations.

Contains the cmd_* functions for CLI subcommands and the interactive
prompts the run controller calls back into.
"""

import logging
import sys
from argparse import Namespace
from collections.abc import Callable

from chapterflow.errors import ConfigLoadError, ProviderError, TemplateError
from chapterflow.models import ChapterOutcome, ResumePoint, RunReport
from chapterflow.progress import ProgressScanner
from chapterflow.runner import RunController, accept_suggestion
from chapterflow.settings import RunConfig, load_run_config
from chapterflow.storage import ChapterStore, GlossaryLedger, OutputStore

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]


def _describe_suggestion(chapters: list[str], suggestion: ResumePoint) -> str:
    if suggestion.finished:
        return "all done"
    return f"chapter {suggestion.index + 1} ({suggestion.chapter_id})"


def prompt_start_chapter(
    chapters: list[str],
    suggestion: ResumePoint,
    input_fn: InputFn | None = None,
) -> int | None:
    """Ask the operator where to start.

    Empty input accepts the suggestion; a number 1..N overrides it;
    anything else falls back to the suggestion.

    Returns:
        0-based start index, or None when there is nothing to do
    """
    print(f"\n📚 Found {len(chapters)} chapter file(s).")
    print(f"💡 Suggested start: {_describe_suggestion(chapters, suggestion)}")

    answer = (input_fn or input)(
        f"Chapter to start from (1-{len(chapters)}) [Enter = suggestion]: "
    ).strip()

    if answer:
        try:
            number = int(answer)
        except ValueError:
            number = 0
        if 1 <= number <= len(chapters):
            if number - 1 < suggestion.index:
                print(
                    "⚠️  Chapters from here on will be processed again; "
                    "their translations and glossaries are overwritten."
                )
            print(f"-> Starting at chapter {number} ({chapters[number - 1]})")
            return number - 1
        print(
            f"❌ Invalid or out-of-range input; using the suggestion: "
            f"{_describe_suggestion(chapters, suggestion)}"
        )

    if suggestion.finished:
        print("✅ All chapters are done. Nothing to do.")
        return None

    print(f"-> Starting at chapter {suggestion.index + 1} ({suggestion.chapter_id})")
    return suggestion.index


def prompt_empty_context(previous_chapter: str, input_fn: InputFn | None = None) -> bool:
    """Warn that the previous chapter has no glossary and ask to go on."""
    print(f"\n⚠️  No glossary found for the previous chapter ({previous_chapter})!")
    print(
        "   The model will not see earlier summaries or terminology, "
        "so the translation may be inconsistent."
    )
    answer = (input_fn or input)("Start with an empty glossary? (y/N): ").strip()
    return answer.lower() == "y"


def prompt_continue(chapter_id: str, input_fn: InputFn | None = None) -> bool:
    """Pause between chapters; 'q' stops the run."""
    answer = (input_fn or input)(
        f"\nChapter {chapter_id} done. Enter to continue, 'q' to quit: "
    ).strip()
    return answer.lower() != "q"


def print_outcome(outcome: ChapterOutcome) -> None:
    """Print one chapter's result."""
    if outcome.ok:
        terms = len(outcome.snapshot.terms) if outcome.snapshot else 0
        new = len(outcome.result.new_terms) if outcome.result else 0
        print(f"✅ {outcome.chapter_id}: done ({new} extracted, {terms} terms in glossary)")
        return

    failure = outcome.failure
    if failure is None:
        print(f"❌ {outcome.chapter_id}: failed")
        return
    print(
        f"❌ {outcome.chapter_id}: {failure.error_type.value} "
        f"during {failure.stage.value}: {failure.message}"
    )
    raw = failure.details.get("raw_text")
    if raw:
        preview = raw if len(raw) <= 500 else raw[:500] + "..."
        print(f"   Raw response: {preview}")


def _print_report(report: RunReport) -> None:
    print("\n" + "=" * 60)
    print(f"Processed {len(report.processed)} chapter(s)")
    if report.failure is not None:
        print(
            f"❌ Stopped at {report.failure.chapter_id} "
            f"({report.failure.error_type.value}). Fix the problem and run again "
            "to resume from this chapter."
        )
    elif report.stopped_by_operator:
        print("⏸️  Stopped by operator. Run again to resume.")
    print("=" * 60)


def _load_config(args: Namespace) -> RunConfig:
    try:
        return load_run_config(getattr(args, "config", None))
    except ConfigLoadError as e:
        print(f"❌ {e}")
        sys.exit(1)


def _input_folder_ready(config: RunConfig) -> bool:
    """Create a missing input folder and report whether chapters can run."""
    input_folder = config.translation.input_folder
    if not input_folder.exists():
        input_folder.mkdir(parents=True, exist_ok=True)
        print(f"📁 Input folder did not exist, created: {input_folder}")
        print("   Put the chapter files (001.txt, 002.txt, ...) there and run again.")
        return False
    return True


def cmd_run(args: Namespace) -> None:
    """Translate chapters, resuming where the last run stopped."""
    config = _load_config(args)
    if args.start is not None and args.start < 1:
        print(f"❌ --start must be a chapter number from 1, got {args.start}")
        sys.exit(1)
    if not _input_folder_ready(config):
        return

    unattended = config.runtime.unattended_mode or args.yes
    callbacks = {
        "choose_start": accept_suggestion if args.yes else prompt_start_chapter,
        "confirm_empty_context": (lambda chapter_id: True) if args.yes else prompt_empty_context,
        "continue_after": prompt_continue,
        "on_outcome": print_outcome,
    }

    try:
        controller = RunController.from_config(config, unattended=unattended, **callbacks)
    except ProviderError as e:
        print(f"❌ Could not set up LLM provider '{config.llm.provider}': {e}")
        sys.exit(1)

    print(
        f"\n🚀 chapterflow: provider={config.llm.provider}, "
        f"target={config.translation.target_language}"
    )

    start_index = args.start - 1 if args.start is not None else None
    try:
        report = controller.run(start_index=start_index)
    except TemplateError as e:
        print(f"❌ Prompt template error (fix config and rerun): {e}")
        sys.exit(2)
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)

    if report.total == 0:
        print("📭 The input folder is empty.")
        return
    if report.start_index is None:
        if args.yes:
            print("✅ All chapters are done. Nothing to do.")
        return

    _print_report(report)
    if report.failure is not None:
        sys.exit(1)


def cmd_status(args: Namespace) -> None:
    """Show per-chapter progress and the suggested resume point."""
    config = _load_config(args)
    translation = config.translation

    chapters = ChapterStore(translation.input_folder).list_chapters()
    if not chapters:
        print(f"📭 No chapters in {translation.input_folder}")
        return

    scanner = ProgressScanner(
        OutputStore(translation.output_folder),
        GlossaryLedger(translation.glossary_folder),
    )

    print(f"\n📚 {len(chapters)} chapter(s) in {translation.input_folder}\n")
    print(f"   {'#':>4}  {'chapter':<16} output  glossary")
    for number, progress in enumerate(scanner.describe(chapters), start=1):
        output = "✅" if progress.has_output else "-"
        glossary = "✅" if progress.has_glossary else "-"
        print(f"   {number:>4}  {progress.chapter_id:<16} {output:^6}  {glossary:^8}")

    suggestion = scanner.suggest_resume_point(chapters)
    print(f"\n💡 Suggested start: {_describe_suggestion(chapters, suggestion)}")
