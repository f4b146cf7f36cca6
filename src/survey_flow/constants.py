"""Form-flow constants shared across the SDK.

These values are referenced by the linker, the validator, and the stores.
The logging toggle can be overridden via environment variables so that
deployments can tune verbosity without code changes.
"""

import os

# Literal key that denotes the synthetic "other" branch in a conditional
# mapping.  Persisted as a Condition row with answer_id = NULL.
OTHER_KEY = "other"

# Config keys stored in the form_config table.
CONFIG_PUBLISHED = "published"
CONFIG_EDITING_LOCKED = "editing_locked"

# Defaults written when the config table is empty.
DEFAULT_CONFIG: dict[str, str] = {
    CONFIG_PUBLISHED: "false",
    CONFIG_EDITING_LOCKED: "false",
}

# When true, the validator logs every cursor transition at DEBUG level.
# Overridable via SURVEY_FLOW_TRACE env var.
TRACE_TRANSITIONS = os.getenv("SURVEY_FLOW_TRACE", "false").lower() == "true"
