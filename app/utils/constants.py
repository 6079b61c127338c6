# Content item lifecycle
DRAFT = "draft"
GENERATED = "generated"
REVIEW = "review"
NEEDS_IMPROVEMENT = "needs_improvement"
APPROVED = "approved"
REJECTED = "rejected"
PUBLISHED = "published"
ARCHIVED = "archived"

STATES = {
    DRAFT,
    GENERATED,
    REVIEW,
    NEEDS_IMPROVEMENT,
    APPROVED,
    REJECTED,
    PUBLISHED,
    ARCHIVED,
}

TERMINAL_STATES = {REJECTED, ARCHIVED}

# Who produced the current text of a content item
ORIGIN_HUMAN = "human"
ORIGIN_AUTOMATIC = "automatic"
ORIGIN_FALLBACK = "fallback"
ORIGINS = {ORIGIN_HUMAN, ORIGIN_AUTOMATIC, ORIGIN_FALLBACK}

CORE_CATEGORIES = ("emergency", "local", "business", "community", "events")
EXTENSION_CATEGORIES = ("transport", "weather", "local_government", "culture", "other")
CATEGORIES = CORE_CATEGORIES + EXTENSION_CATEGORIES
# category assumed for raw items without a hint
UNCATEGORIZED = "other"

# Publication targeting groups
CITY_WIDE_CATEGORIES = {"emergency", "transport", "weather"}
LOCAL_CATEGORIES = {"local", "local_government", "community", "business", "events"}

# Review queue weighting
CATEGORY_PRIORITY_WEIGHTS = {
    "emergency": 30,
    "transport": 20,
    "local_government": 15,
    "community": 10,
    "business": 5,
    "weather": 5,
}

RUN_RUNNING = "running"
RUN_COMPLETED = "completed"
RUN_FAILED = "failed"
RUN_SKIPPED = "skipped"

TRIGGER_MANUAL = "manual"
TRIGGER_SCHEDULED = "scheduled"
