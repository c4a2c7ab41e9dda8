"""Typed failures surfaced to API callers.

Internal fallbacks (caption tiers, model lists) never raise these while a
later option remains; only exhaustion or an input/contract violation does.
"""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    status_code = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.upstream_status = upstream_status


class InputRejected(PipelineError):
    status_code = 422


class FileTooLarge(InputRejected):
    status_code = 413


class UnsupportedFileType(InputRejected):
    status_code = 422


class ExtractionFailed(PipelineError):
    status_code = 422


class NoExtractableText(ExtractionFailed):
    pass


class SourceUnreachable(PipelineError):
    status_code = 422


class NoCaptions(PipelineError):
    status_code = 422


class GenerationFailed(PipelineError):
    status_code = 502


class GameNotFound(PipelineError):
    status_code = 404
