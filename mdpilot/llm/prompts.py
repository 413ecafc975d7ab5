"""Prompt templates for instruction interpretation.

Responsibilities:
- Build the operations prompt listing the supported vocabulary and row-number rules.
- Build full-document rewrite prompts for free-form and script commands.
"""

from __future__ import annotations

import json

_OPERATIONS_EXAMPLES = (
    (
        "Change the heading 'Introduction' to 'Overview'",
        {
            "operations": [
                {
                    "type": "change_heading",
                    "parameters": {"match": "Introduction", "newText": "Overview"},
                }
            ]
        },
    ),
    (
        "Emphasize the words 'important' and 'crucial' across the document",
        {
            "operations": [
                {"type": "emphasize_text", "parameters": {"text": "important"}},
                {"type": "emphasize_text", "parameters": {"text": "crucial"}},
            ]
        },
    ),
    (
        "Emphasize the word 'important' only on row 3",
        {
            "operations": [
                {"type": "emphasize_text", "parameters": {"text": "important", "lineNumber": 3}}
            ]
        },
    ),
)


class PromptLibrary:
    """Build prompt strings for each command mode."""

    def operations_prompt(self, command: str, annotated_document: str) -> str:
        """Return the prompt asking for a JSON operation batch."""

        examples = "\n\n".join(
            f"Command: {example_command}\n{json.dumps(payload, indent=2)}"
            for example_command, payload in _OPERATIONS_EXAMPLES
        )
        return (
            "You help restructure and restyle Markdown documents. Given the command and the "
            "document below, answer with the operations that modify the document. Use only "
            "the available operations; repeat an operation as often as needed.\n\n"
            f"**Command**: {command}\n"
            f"**Document Content**:\n{annotated_document}\n\n"
            "Available operations:\n"
            "1. change_heading {match, newText}: replace `match` inside every heading "
            "containing it with `newText`.\n"
            "2. emphasize_text {text, lineNumber?}: wrap whole-word occurrences of `text` in "
            "bold; `lineNumber` limits the change to one row.\n"
            "3. generate_toc {heading?, maxDepth?}: rebuild the table of contents section.\n"
            "4. add_heading_numbering {}: number headings hierarchically (1, 1.1, ...).\n"
            "5. convert_to_doc {}: export the document as a Word (.docx) file.\n"
            "6. convert_to_mp3 {}: export the document as narrated audio.\n\n"
            "Row numbers:\n"
            "- Markers such as [ROW 8] at the end of a line are technical row numbers; they "
            "may not match the visual line a reader would count.\n"
            "- Use the marker printed at the end of a line to address that line.\n\n"
            'Answer format: {"operations": [{"type": "...", "parameters": {...}}]}\n\n'
            f"{examples}\n\n"
            "Only provide the JSON without any additional text. If the command cannot be "
            "fulfilled with the available operations, return an empty operations array."
        )

    def free_form_prompt(self, command: str, document: str) -> str:
        """Return the prompt asking for the complete rewritten document."""

        return (
            "Apply the following command to the Markdown document and return the complete "
            "modified document. Keep content the command does not mention unchanged. Output "
            "only the Markdown document with no commentary.\n\n"
            f"**Command**: {command}\n"
            f"**Document Content**:\n{document}"
        )

    def script_prompt(self, command: str, document: str) -> str:
        """Return the prompt asking for a speaker-tagged dialogue script."""

        return (
            "Turn the Markdown document into a spoken script following the command. Start "
            "every paragraph spoken by a character with a tag of the form "
            "`[speaker: NAME]`, followed by the spoken text. Separate paragraphs with a blank "
            "line. Output only the script with no commentary.\n\n"
            f"**Command**: {command}\n"
            f"**Document Content**:\n{document}"
        )
