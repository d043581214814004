"""JSON schema definition for reporter output."""
from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

_STATUS = {"type": "string", "enum": ["passed", "failed", "pending", "skipped"]}

JSON_SCHEMA_V1 = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "nestspec report",
    "type": "object",
    "required": ["schema_version", "generated_at", "summary", "suites"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "summary": {
            "type": "object",
            "required": ["total", "passed", "failed", "pending", "skipped", "duration_s", "exit_code"],
            "properties": {
                "total": {"type": "integer"},
                "passed": {"type": "integer"},
                "failed": {"type": "integer"},
                "pending": {"type": "integer"},
                "skipped": {"type": "integer"},
                "duration_s": {"type": "number"},
                "focus_mode": {"type": "boolean"},
                "focus_fail_triggered": {"type": "boolean"},
                "exit_code": {"type": "integer"},
            },
        },
        "suites": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "file", "duration_s", "cases"],
                "properties": {
                    "name": {"type": "string"},
                    "file": {"type": "string"},
                    "duration_s": {"type": "number"},
                    "cases": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["name", "path", "status", "duration_ms", "attempts"],
                            "properties": {
                                "name": {"type": "string"},
                                "path": {"type": "array", "items": {"type": "string"}, "minItems": 1},
                                "status": _STATUS,
                                "duration_ms": {"type": "number"},
                                "attempts": {"type": "integer", "minimum": 0},
                                "reason": {"type": "string"},
                                "location": {"type": "string"},
                                "labels": {"type": "array", "items": {"type": "string"}},
                                "timed_out": {"type": "boolean"},
                                "consecutive_passes": {"type": "integer"},
                                "required_passes": {"type": "integer"},
                                "log": {"type": "array", "items": {"type": "string"}},
                                "steps": {
                                    "type": "array",
                                    "items": {
                                        "type": "object",
                                        "required": ["name", "status"],
                                        "properties": {
                                            "name": {"type": "string"},
                                            "status": _STATUS,
                                            "reason": {"type": "string"},
                                            "location": {"type": "string"},
                                        },
                                    },
                                },
                            },
                        },
                    },
                },
            },
        },
    },
}
