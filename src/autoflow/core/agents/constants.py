from __future__ import annotations

from autoflow.core.registry.schemas import StepCategory

# Actions detected below this confidence are dropped.
INTENT_CONFIDENCE_THRESHOLD = 0.25

# A prompt longer than this with no surviving action gets a synthetic fetch.
FALLBACK_MIN_PROMPT_LENGTH = 8
FALLBACK_ACTION = "fetch"
FALLBACK_ACTION_CONFIDENCE = 0.3

API_VERSION = "agentic-v1"

DEFAULT_INPUT_NODE = "dataFetcher"
DEFAULT_OUTPUT_NODE = "outputLogger"
DEFAULT_STEP_SCORE = 0.5
EXPLICIT_OUTPUT_SCORE = 0.95
FALLBACK_PENALTY = 0.1

NODE_TYPE = "customNode"
EDGE_TYPE = "smoothstep"
NODE_ORIGIN_X = 100
NODE_SPACING_X = 250
NODE_POSITION_Y: dict[StepCategory, int] = {
    StepCategory.INPUT: 100,
    StepCategory.PROCESS: 200,
    StepCategory.OUTPUT: 100,
}
NODE_POSITION_Y_UNKNOWN = 150

# Explicit output keyword -> output step id. Naming a channel skips capability scoring.
OUTPUT_STEP_MAP: dict[str, str] = {
    "email": "emailGenerator",
    "slack": "slackSender",
    "sms": "smsSender",
    "twitter": "twitterApi",
    "instagram": "instagramApi",
    "linkedin": "linkedinApi",
    "sheets": "googleSheets",
    "s3": "s3Upload",
    "webhook": "webhookTrigger",
    "file": "s3Upload",
}
