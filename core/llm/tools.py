"""
Tool (function-calling) schemas for the multi-step API strategy.

Schemas are provider-neutral ``{name, description, parameters}`` dicts; each
provider wraps them in its own request format.
"""
from typing import Any, Dict

OPERATION_VALUES = ["added", "modified", "deleted", "renamed", "binary"]
CATEGORY_VALUES = ["source", "test", "config", "docs", "binary", "build"]

_FILE_ANALYSIS_PROPERTIES: Dict[str, Any] = {
    "file_path": {"type": "string", "description": "Relative path to the file"},
    "operation_type": {
        "type": "string",
        "enum": OPERATION_VALUES,
        "description": "Type of operation performed on the file",
    },
    "lines_added": {"type": "integer", "minimum": 0, "description": "Number of lines added"},
    "lines_removed": {"type": "integer", "minimum": 0, "description": "Number of lines removed"},
    "file_category": {"type": "string", "enum": CATEGORY_VALUES, "description": "Category of the file"},
    "summary": {"type": "string", "description": "Brief description of changes"},
}

ANALYZE_TOOL = {
    "name": "analyze",
    "description": "Report the analysis of a single file's changes from the git diff",
    "parameters": {
        "type": "object",
        "properties": {
            "lines_added": _FILE_ANALYSIS_PROPERTIES["lines_added"],
            "lines_removed": _FILE_ANALYSIS_PROPERTIES["lines_removed"],
            "file_category": _FILE_ANALYSIS_PROPERTIES["file_category"],
            "summary": _FILE_ANALYSIS_PROPERTIES["summary"],
        },
        "required": ["lines_added", "lines_removed", "file_category", "summary"],
    },
}

SCORE_TOOL = {
    "name": "score",
    "description": "Report impact scores for all analyzed files",
    "parameters": {
        "type": "object",
        "properties": {
            "files_with_scores": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        **_FILE_ANALYSIS_PROPERTIES,
                        "impact_score": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                    },
                    "required": ["file_path", "impact_score"],
                },
            },
        },
        "required": ["files_with_scores"],
    },
}

GENERATE_TOOL = {
    "name": "generate",
    "description": "Report commit message candidates based on scored files",
    "parameters": {
        "type": "object",
        "properties": {
            "candidates": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Commit message candidates, best first",
            },
            "reasoning": {"type": "string", "description": "Why these candidates describe the change"},
        },
        "required": ["candidates", "reasoning"],
    },
}

COMMIT_TOOL = {
    "name": "commit",
    "description": "Report the final commit message",
    "parameters": {
        "type": "object",
        "properties": {
            "reasoning": {
                "type": "string",
                "description": "Justification for why the commit message accurately represents the diff (1-2 sentences)",
            },
            "message": {"type": "string", "description": "The actual commit message to be used"},
        },
        "required": ["message"],
    },
}
