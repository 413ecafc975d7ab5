"""Unit tests for operation handlers and the batch engine."""

from __future__ import annotations

import asyncio

import pytest

from mdpilot.models.datatypes import Operation
from mdpilot.operations import OperationRegistry, OperationType, build_default_registry
from mdpilot.operations.generate_toc import Slugger
from mdpilot.operations.registry import normalize_parameters
from mdpilot.pipeline import CommandPipeline


def _transform(pipeline: CommandPipeline, text: str, *operations: Operation) -> str:
    """Apply an explicit batch and return the modified document text."""

    return asyncio.run(pipeline.transform(text, list(operations))).modified_content


def test_offline_command_renames_heading_and_emphasizes_word(
    offline_pipeline: CommandPipeline,
) -> None:
    """The offline batch should rename the heading and bold the word."""

    result = asyncio.run(
        offline_pipeline.apply_command(
            "# Introduction\n\nThis is important.\n", "Tidy up the document"
        )
    )

    assert result.modified_content == "# Overview\n\nThis is **important**.\n"
    assert result.report.applied == ["change_heading", "emphasize_text"]
    assert result.original_content == "# Introduction\n\nThis is important.\n"


def test_emphasize_text_is_idempotent(offline_pipeline: CommandPipeline) -> None:
    """Applying the same emphasis twice should equal applying it once."""

    operation = Operation(type="emphasize_text", parameters={"text": "important"})
    once = _transform(offline_pipeline, "An important and important note.\n", operation)
    twice = _transform(offline_pipeline, once, operation)

    assert once == "An **important** and **important** note.\n"
    assert twice == once


def test_emphasize_text_matches_whole_words_case_sensitively(
    offline_pipeline: CommandPipeline,
) -> None:
    """Partial words and different casing should not be emphasized."""

    operation = Operation(type="emphasize_text", parameters={"text": "art"})

    assert (
        _transform(offline_pipeline, "Art is art, not party.\n", operation)
        == "Art is **art**, not party.\n"
    )


def test_emphasize_text_respects_echoed_row_marker(offline_pipeline: CommandPipeline) -> None:
    """A `lineNumber` given as an echoed marker should restrict the change to that row."""

    operation = Operation(
        type="emphasize_text", parameters={"text": "important", "lineNumber": "[ROW 3]"}
    )

    assert (
        _transform(offline_pipeline, "Alpha important.\n\nBeta important.\n", operation)
        == "Alpha important.\n\nBeta **important**.\n"
    )


def test_emphasize_text_line_restriction_inside_multiline_paragraph(
    offline_pipeline: CommandPipeline,
) -> None:
    """Only words on the requested line of a wrapped paragraph should change."""

    operation = Operation(
        type="emphasize_text", parameters={"text": "important", "lineNumber": 2}
    )

    assert (
        _transform(offline_pipeline, "The important *x* note\nand important again\n", operation)
        == "The important *x* note\nand **important** again\n"
    )


def test_change_heading_only_touches_headings(offline_pipeline: CommandPipeline) -> None:
    """Heading renames should leave body text with the same words alone."""

    operation = Operation(
        type="change_heading", parameters={"match": "Setup", "newText": "Installation"}
    )

    assert (
        _transform(offline_pipeline, "# Setup\n\nSetup steps.\n\n## Setup notes\n", operation)
        == "# Installation\n\nSetup steps.\n\n## Installation notes\n"
    )


def test_change_heading_collapses_match_spanning_inline_runs(
    offline_pipeline: CommandPipeline,
) -> None:
    """A match crossing emphasis boundaries should collapse the heading to plain text."""

    operation = Operation(
        type="change_heading", parameters={"match": "Quick Start", "newText": "Start"}
    )

    assert _transform(offline_pipeline, "# *Quick* Start\n", operation) == "# Start\n"


def test_heading_numbering_resets_deeper_counters_and_is_idempotent(
    offline_pipeline: CommandPipeline,
) -> None:
    """Numbering should follow the hierarchy and not double-prefix on reapplication."""

    operation = Operation(type="add_heading_numbering")
    source = "# A\n\n## B\n\n## C\n\n# D\n\n## E\n"

    once = _transform(offline_pipeline, source, operation)

    assert once == "# 1 A\n\n## 1.1 B\n\n## 1.2 C\n\n# 2 D\n\n## 2.1 E\n"
    assert _transform(offline_pipeline, once, operation) == once


def test_heading_numbering_starts_at_shallowest_depth(offline_pipeline: CommandPipeline) -> None:
    """Documents without level-1 headings should still start numbering at 1."""

    operation = Operation(type="add_heading_numbering")

    assert (
        _transform(offline_pipeline, "## X\n\n### Y\n\n## Z\n", operation)
        == "## 1 X\n\n### 1.1 Y\n\n## 2 Z\n"
    )


def test_generate_toc_replaces_contents_section_with_nested_links(
    offline_pipeline: CommandPipeline,
) -> None:
    """The contents section should list following headings as nested anchor links."""

    source = (
        "# Guide\n\n## Contents\n\nold entry\n\n## Install\n\n### Linux\n\n## Usage\n"
    )

    assert _transform(offline_pipeline, source, Operation(type="generate_toc")) == (
        "# Guide\n\n## Contents\n\n"
        "- [Install](#install)\n  - [Linux](#linux)\n- [Usage](#usage)\n\n"
        "## Install\n\n### Linux\n\n## Usage\n"
    )


def test_generate_toc_respects_max_depth_and_is_noop_without_heading(
    offline_pipeline: CommandPipeline,
) -> None:
    """`maxDepth` should filter entries and a missing contents heading changes nothing."""

    shallow = Operation(type="generate_toc", parameters={"maxDepth": 2})
    source = "# Guide\n\n## Contents\n\n## Install\n\n### Linux\n"

    assert _transform(offline_pipeline, source, shallow) == (
        "# Guide\n\n## Contents\n\n- [Install](#install)\n\n## Install\n\n### Linux\n"
    )
    untouched = "# Guide\n\n## Install\n"
    assert _transform(offline_pipeline, untouched, shallow) == untouched


def test_slugger_deduplicates_repeated_headings() -> None:
    """Repeated heading texts should receive numeric suffixes."""

    slugger = Slugger()

    assert [slugger.slug(value) for value in ("Setup", "Setup", "What's new?", "Setup")] == [
        "setup",
        "setup-1",
        "whats-new",
        "setup-2",
    ]


def test_engine_skips_unknown_types_and_records_failures(
    offline_pipeline: CommandPipeline,
) -> None:
    """Unknown operations are skipped and failing ones recorded; the rest still apply."""

    result = asyncio.run(
        offline_pipeline.transform(
            "# Intro\n\nA key point.\n",
            [
                Operation(type="rotate_page"),
                Operation(type="change_heading", parameters={"newText": "Missing match"}),
                Operation(type="emphasize_text", parameters={"text": "key"}),
            ],
        )
    )

    assert result.modified_content == "# Intro\n\nA **key** point.\n"
    assert result.report.skipped == ["rotate_page"]
    assert result.report.applied == ["emphasize_text"]
    assert [(failure.index, failure.error_type) for failure in result.report.failures] == [
        (1, "OperationParameterError")
    ]
    assert result.report.succeeded is False


def test_front_matter_toggles_append_numbering_and_toc(
    offline_pipeline: CommandPipeline,
) -> None:
    """`numbering` and `toc` front-matter flags should add their operations to the batch."""

    source = "<!--\nnumbering: true\ntoc: 'yes'\n-->\n\n# Contents\n\n# Usage\n"

    result = asyncio.run(offline_pipeline.transform(source, []))

    assert [operation.type for operation in result.operations_applied] == [
        "add_heading_numbering",
        "generate_toc",
    ]
    assert result.modified_content.endswith("# 1 Contents\n\n- [2 Usage](#2-usage)\n\n# 2 Usage\n")


def test_registry_rejects_duplicate_registration() -> None:
    """Each operation type may be bound to exactly one handler."""

    registry = OperationRegistry()
    registry.register(OperationType.GENERATE_TOC, lambda tree, parameters, context: None)

    with pytest.raises(ValueError, match="already registered"):
        registry.register(OperationType.GENERATE_TOC, lambda tree, parameters, context: None)


def test_default_registry_covers_every_operation_type() -> None:
    """The default registry should bind the whole operation vocabulary."""

    assert set(build_default_registry().names()) == {member.value for member in OperationType}


def test_normalize_parameters_resolves_markers() -> None:
    """Row keys become integers and other strings lose echoed markers."""

    assert normalize_parameters(
        {"row": "[ROW 5]", "text": "word[ROW 5]", "maxDepth": 2}
    ) == {"row": 5, "text": "word", "maxDepth": 2}
