"""Services for league submissions and activity configuration."""

from .activity_config_service import (
    ActivityConfigService,
    FrequencyUpdate,
    MinimumsUpdate,
    get_activity_config_service,
)
from .frequency_guard import FrequencyCheck, FrequencyGuard, get_frequency_guard, validate_frequency
from .submission_service import (
    ManualEntryCreate,
    PreviewRequest,
    SubmissionCreate,
    SubmissionService,
    SubmitResult,
    get_submission_service,
)
from .submission_workflow import (
    SubmissionStateMachine,
    TransitionResult,
    ValidationRequest,
    get_state_machine,
)
from .validation_queue import (
    RestDayUsage,
    SubmissionStats,
    ValidationQueueAggregator,
    filter_submissions,
)

__all__ = [
    "ActivityConfigService",
    "FrequencyUpdate",
    "MinimumsUpdate",
    "get_activity_config_service",
    "FrequencyCheck",
    "FrequencyGuard",
    "get_frequency_guard",
    "validate_frequency",
    "ManualEntryCreate",
    "PreviewRequest",
    "SubmissionCreate",
    "SubmissionService",
    "SubmitResult",
    "get_submission_service",
    "SubmissionStateMachine",
    "TransitionResult",
    "ValidationRequest",
    "get_state_machine",
    "RestDayUsage",
    "SubmissionStats",
    "ValidationQueueAggregator",
    "filter_submissions",
]
