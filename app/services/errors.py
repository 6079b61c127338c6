class PipelineError(Exception):
    """Base class for moderation pipeline errors."""


class GenerationError(PipelineError):
    pass


class TransientGenerationError(GenerationError):
    """Timeout, rate limit or flaky upstream; worth retrying."""


class PermanentGenerationError(GenerationError):
    """Upstream refused or is unavailable; retrying will not help."""


class NotFoundError(PipelineError):
    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


class ConcurrencyConflict(PipelineError):
    """A conditional update found the item in a different status than expected."""

    def __init__(self, content_id: str, expected_status: str):
        super().__init__(f"Content {content_id} is no longer {expected_status}")
        self.content_id = content_id
        self.expected_status = expected_status


class InvalidTransitionError(PipelineError, ValueError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Invalid transition: {current} -> {target}")
        self.current = current
        self.target = target


class LowConfidenceError(PipelineError):
    def __init__(self, confidence: float | None, required: float):
        super().__init__(f"Confidence {confidence} below required {required}")
        self.confidence = confidence
        self.required = required


class PublicationTargetError(PipelineError):
    """No neighborhood could be resolved for a publication."""


class RunStopped(PipelineError):
    """An admin asked the running pipeline run to stop."""

    def __init__(self, run_id: str, stage: str):
        super().__init__(f"Run stopped on request after {stage}")
        self.run_id = run_id
        self.stage = stage
