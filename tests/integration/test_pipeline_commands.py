"""Integration tests for file and project commands through the pipeline."""

from __future__ import annotations

import asyncio
from io import BytesIO
from pathlib import Path

from docx import Document
import pytest

from mdpilot.config import MdPilotConfig
from mdpilot.errors import PipelineStageError
from mdpilot.llm.openai_client import OpenAIChatClient
from mdpilot.models.datatypes import Operation
from mdpilot.pipeline import CommandPipeline

SPEAKER_DOCUMENT = (
    "<!--\n"
    "speaker_map:\n"
    "  - Speaker: Alice\n"
    "    TTS_Voice: Nova\n"
    "  - Speaker: Bob\n"
    "    TTS_Voice: Onyx\n"
    "-->\n\n"
    "[speaker: Alice] Hi there.\n\n"
    "[speaker: Bob] Hello, Alice.\n"
)


def _pipeline() -> CommandPipeline:
    return CommandPipeline(MdPilotConfig(api_key="sk-test-key"))


def test_apply_command_to_file_rewrites_document(tmp_path: Path, provider_calls) -> None:  # type: ignore[no-untyped-def]
    """The interpreted batch is applied and the document rewritten in place."""

    document = tmp_path / "guide.md"
    document.write_text("# Introduction\n\nThis is important.\n", encoding="utf-8")

    outcome = asyncio.run(_pipeline().apply_command_to_file(document, "Rename and stress"))

    assert outcome.error is None
    assert outcome.artifacts == ()
    assert document.read_text(encoding="utf-8") == "# Overview\n\nThis is **important**.\n"
    assert len(provider_calls.chat) == 1
    prompt_text = str(provider_calls.chat[0]["messages"])
    assert "[ROW 1]" in prompt_text
    assert "Rename and stress" in prompt_text


def test_identical_commands_reuse_the_cached_completion(provider_calls) -> None:  # type: ignore[no-untyped-def]
    """A repeated command on the same text must not reach the service twice."""

    pipeline = _pipeline()
    source = "# Introduction\n\nThis is important.\n"

    first = asyncio.run(pipeline.apply_command(source, "Rename"))
    second = asyncio.run(pipeline.apply_command(source, "Rename"))

    assert first.modified_content == second.modified_content
    assert len(provider_calls.chat) == 1


def test_free_form_mode_keeps_front_matter(monkeypatch: pytest.MonkeyPatch) -> None:
    """Free-form rewrites replace the body and re-attach the document configuration."""

    monkeypatch.setattr(
        OpenAIChatClient,
        "chat_completion_text",
        lambda self, **kwargs: "```markdown\n# Rewritten[ROW 1]\n```",
    )

    result = asyncio.run(
        _pipeline().apply_command("<!--\ntitle: Notes\n-->\n\n# Old\n", "Rewrite", "free-form")
    )

    assert result.modified_content == "<!--\ntitle: Notes\n-->\n\n# Rewritten"
    assert result.report.applied == []


def test_missing_api_key_fails_interpret_stage(provider_calls) -> None:  # type: ignore[no-untyped-def]
    """Without a credential the command fails at the interpret stage and never calls out."""

    pipeline = CommandPipeline(MdPilotConfig())

    with pytest.raises(PipelineStageError) as error:
        asyncio.run(pipeline.apply_command("# Title\n", "Anything"))

    assert error.value.stage == "interpret"
    assert "--api-key" in error.value.hint
    assert provider_calls.chat == []


def test_malformed_batch_fails_interpret_stage(monkeypatch: pytest.MonkeyPatch) -> None:
    """A non-JSON answer stops the request before any operation runs."""

    monkeypatch.setattr(
        OpenAIChatClient, "chat_completion_text", lambda self, **kwargs: "Sure! Done."
    )

    with pytest.raises(PipelineStageError, match="Invalid response format") as error:
        asyncio.run(_pipeline().apply_command("# Title\n", "Anything"))

    assert error.value.stage == "interpret"


def test_project_fan_out_isolates_failing_documents(tmp_path: Path) -> None:
    """One unreadable document is reported while the others are rewritten."""

    project = tmp_path / "project"
    project.mkdir()
    (project / "a.md").write_text("# Introduction\n\nThis is important.\n", encoding="utf-8")
    (project / "b.md").write_bytes(b"\xff\xfe\xfa broken")
    (project / "c.md").write_text("# Introduction\n\nNothing here.\n", encoding="utf-8")

    outcomes = asyncio.run(_pipeline().apply_command_to_project(project, "Rename"))

    assert [outcome.path.name for outcome in outcomes] == ["a.md", "b.md", "c.md"]
    assert [outcome.error is None for outcome in outcomes] == [True, False, True]
    assert (project / "a.md").read_text(encoding="utf-8") == (
        "# Overview\n\nThis is **important**.\n"
    )
    assert (project / "c.md").read_text(encoding="utf-8") == "# Overview\n\nNothing here.\n"
    assert (project / "b.md").read_bytes() == b"\xff\xfe\xfa broken"


def test_project_requires_existing_directory(tmp_path: Path) -> None:
    """A missing project directory is a stage error, not an empty run."""

    with pytest.raises(PipelineStageError) as error:
        asyncio.run(_pipeline().apply_command_to_project(tmp_path / "missing", "Rename"))

    assert error.value.stage == "project"


def test_convert_to_mp3_uses_speaker_voices_and_writes_artifact(
    tmp_path: Path, provider_calls  # type: ignore[no-untyped-def]
) -> None:
    """Each speaker segment is voiced with its mapped voice and merged in order."""

    document = tmp_path / "dialogue.md"
    document.write_text(SPEAKER_DOCUMENT, encoding="utf-8")

    outcome = asyncio.run(
        _pipeline().transform_file(document, [Operation(type="convert_to_mp3")])
    )

    assert [artifact.name for artifact in outcome.artifacts] == ["dialogue.mp3"]
    assert (tmp_path / "dialogue.mp3").read_bytes() == (
        b"[Nova|Hi there.][Onyx|Hello, Alice.]"
    )
    assert [(call["voice"], call["text"]) for call in provider_calls.speech] == [
        ("Nova", "Hi there."),
        ("Onyx", "Hello, Alice."),
    ]
    assert outcome.result.modified_content.startswith("<!--\nspeaker_map:\n")


def test_unmapped_speaker_reports_failure_without_audio(
    tmp_path: Path, provider_calls  # type: ignore[no-untyped-def]
) -> None:
    """An unknown speaker fails only the audio operation; the document is still written."""

    document = tmp_path / "dialogue.md"
    document.write_text(
        SPEAKER_DOCUMENT.replace("[speaker: Bob]", "[speaker: Carol]"), encoding="utf-8"
    )

    outcome = asyncio.run(
        _pipeline().transform_file(
            document,
            [Operation(type="convert_to_mp3"), Operation(type="add_heading_numbering")],
        )
    )

    assert outcome.artifacts == ()
    assert provider_calls.speech == []
    assert [failure.type for failure in outcome.result.report.failures] == [
        "convert_to_mp3"
    ]
    assert outcome.result.report.applied == ["add_heading_numbering"]
    assert not (tmp_path / "dialogue.mp3").exists()


def test_convert_to_doc_writes_word_artifact(tmp_path: Path) -> None:
    """The Word artifact reflects the tree after earlier operations in the batch."""

    document = tmp_path / "report.md"
    document.write_text("# Summary\n\n- one\n- two\n", encoding="utf-8")

    outcome = asyncio.run(
        _pipeline().transform_file(
            document,
            [Operation(type="add_heading_numbering"), Operation(type="convert_to_doc")],
        )
    )

    assert [artifact.name for artifact in outcome.artifacts] == ["report.docx"]
    word = Document(BytesIO((tmp_path / "report.docx").read_bytes()))
    assert [paragraph.text for paragraph in word.paragraphs] == ["1 Summary", "one", "two"]
    assert document.read_text(encoding="utf-8") == "# 1 Summary\n\n- one\n- two\n"
