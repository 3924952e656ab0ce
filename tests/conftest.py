"""Shared test fixtures for chapterflow tests."""

import json
from pathlib import Path

import pytest

from chapterflow.settings import RunConfig
from chapterflow.storage import ChapterStore, GlossaryLedger, OutputStore

ANALYSIS_TEMPLATE = (
    "ANALYZE into {{ target_lang }} "
    "(summary <= {{ summary_len }}, terms <= {{ glossary_limit }})\n"
    "PREV: {{ prev_summary }}\n"
    "GLOSSARY: {{ existing_glossary }}"
)

TRANSLATION_TEMPLATE = (
    "TRANSLATE into {{ target_lang }}\n"
    "SUMMARY: {{ summary }}\n"
    "GLOSSARY: {{ glossary }}"
)


class FakeClient:
    """Scripted LLMClient.

    Analysis prompts (starting with ANALYZE) are answered from
    ``analysis`` keyed by chapter text; anything else is a translation
    and answered by ``translate``. Every call is recorded.
    """

    def __init__(self, analysis: dict | None = None, translate=None):
        self.analysis = analysis or {}
        self.translate = translate or (lambda prompt, content: f"TRANSLATED[{content}]")
        self.calls: list[tuple[str, str, str]] = []

    def complete(self, prompt: str, content: str) -> str:
        if prompt.startswith("ANALYZE"):
            self.calls.append(("analysis", prompt, content))
            response = self.analysis.get(content, {"summary": f"S:{content}", "new_glossary": {}})
            if isinstance(response, Exception):
                raise response
            return response if isinstance(response, str) else json.dumps(response, ensure_ascii=False)

        self.calls.append(("translation", prompt, content))
        result = self.translate(prompt, content)
        if isinstance(result, Exception):
            raise result
        return result

    def prompts(self, kind: str) -> list[str]:
        return [prompt for k, prompt, _ in self.calls if k == kind]


@pytest.fixture
def fake_client():
    """Factory for scripted LLM clients."""
    return FakeClient


@pytest.fixture
def folders(tmp_path: Path) -> dict[str, Path]:
    """Input/output/glossary folders under tmp_path (input created)."""
    paths = {
        "input": tmp_path / "input",
        "output": tmp_path / "output",
        "glossary": tmp_path / "glossaries",
    }
    paths["input"].mkdir()
    return paths


@pytest.fixture
def write_chapters(folders):
    """Write chapter files: write_chapters({"1": "text", ...})."""

    def _write(chapters: dict[str, str]) -> None:
        for chapter_id, text in chapters.items():
            (folders["input"] / f"{chapter_id}.txt").write_text(text, encoding="utf-8")

    return _write


@pytest.fixture
def run_config(folders) -> RunConfig:
    """RunConfig pointing at the tmp folders, with test templates."""
    return RunConfig.model_validate(
        {
            "llm": {"provider": "ollama"},
            "translation": {
                "target_language": "zh-TW",
                "input_folder": str(folders["input"]),
                "output_folder": str(folders["output"]),
                "glossary_folder": str(folders["glossary"]),
            },
            "constraints": {"max_summary_length": 300, "max_dictionary_size": 20},
            "runtime": {"unattended_mode": True},
            "prompts": {
                "analysis_prompt": ANALYSIS_TEMPLATE,
                "translation_prompt": TRANSLATION_TEMPLATE,
            },
        }
    )


@pytest.fixture
def chapter_store(folders) -> ChapterStore:
    return ChapterStore(folders["input"])


@pytest.fixture
def ledger(folders) -> GlossaryLedger:
    return GlossaryLedger(folders["glossary"])


@pytest.fixture
def outputs(folders) -> OutputStore:
    return OutputStore(folders["output"])


@pytest.fixture
def write_snapshot(folders):
    """Write a raw glossary file: write_snapshot("2", {...} or "text")."""

    def _write(chapter_id: str, content) -> Path:
        folders["glossary"].mkdir(exist_ok=True)
        path = folders["glossary"] / f"{chapter_id}.json"
        if not isinstance(content, str):
            content = json.dumps(content, ensure_ascii=False)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_output(folders):
    """Write a translated chapter: write_output("2", "text")."""

    def _write(chapter_id: str, text: str = "translated") -> Path:
        folders["output"].mkdir(exist_ok=True)
        path = folders["output"] / f"{chapter_id}.txt"
        path.write_text(text, encoding="utf-8")
        return path

    return _write
