"""Prompt and schema text sent to the extraction service."""

from __future__ import annotations

FILE_ANALYSIS_SCHEMA = """{
  "filePath": "string",
  "fileName": "string",
  "fileType": "typescript | javascript | tsx | jsx",
  "lines": "number",
  "imports": [{ "source": "string", "specifiers": ["string"], "isExternal": "boolean" }],
  "exports": [{ "name": "string", "type": "function | class | interface | type | const | default" }],
  "entities": [{ "name": "string", "type": "function | class | interface | type | variable", "startLine": "number", "endLine": "number" }]
}"""

FILE_ANALYSIS_PROMPT = """Analyse this code file and extract:
1. Import statements (mark external if from node_modules)
2. Export statements with their types
3. Code entities (functions, classes, interfaces, types, variables) with line ranges

Use fileType: typescript, javascript, tsx, or jsx."""

STRUCTURED_RESPONSE_TEMPLATE = (
    "{prompt}\n\nYou must respond with valid JSON matching this schema:\n{schema}\n\n"
    "Respond ONLY with the JSON, wrapped in a markdown code block using ```json."
)

_SUMMARY_REQUIREMENTS = """Requirements:
- Keep the summary between 200-300 words maximum
- Use professional, technical language
- Be concise and direct
- Do not include code examples
- Write in plain text (no markdown formatting)"""

FILE_SUMMARY_PROMPT = f"""Generate a concise technical summary for this code file. Focus on:

1. **Purpose**: What is the primary purpose of this file?
2. **Responsibilities**: What are the main responsibilities and functionality it provides?
3. **Dependencies**: What key dependencies or imports does it rely on?
4. **System Fit**: How does this file fit into a larger system or architecture?

{_SUMMARY_REQUIREMENTS}"""

ENTITY_SUMMARY_PROMPT = f"""Generate a concise technical summary for this specific code entity (function, class, or method). Focus on:

1. **What it does**: Describe the core functionality and purpose
2. **Parameters**: Explain the input parameters and their expected types/values
3. **Return value**: What does it return and under what conditions?
4. **Side effects**: Note any side effects (state changes, I/O operations, external calls)
5. **Usage context**: When and how should this be used?

{_SUMMARY_REQUIREMENTS}"""

FILE_TYPE_MAP: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
}


__all__ = [
    "ENTITY_SUMMARY_PROMPT",
    "FILE_ANALYSIS_PROMPT",
    "FILE_ANALYSIS_SCHEMA",
    "FILE_SUMMARY_PROMPT",
    "FILE_TYPE_MAP",
    "STRUCTURED_RESPONSE_TEMPLATE",
]
