"""
Version constants for the comment audit pipeline.
"""

# API Version
API_VERSION = "1.0.0"

# Component versions (update these when heuristics change)
EXTRACTOR_VERSION = "delete-anchor-1.0.0"
CHROME_FILTER_VERSION = "chrome-en-2025.12"
FLAGGING_POLICY_VERSION = "flagging-1.0.0"
PERSPECTIVE_API_VERSION = "v1alpha1"


def get_component_versions() -> dict:
    """Versions of every heuristic that influences audit results."""
    return {
        "extractor_version": EXTRACTOR_VERSION,
        "chrome_filter_version": CHROME_FILTER_VERSION,
        "flagging_policy_version": FLAGGING_POLICY_VERSION,
        "perspective_api_version": PERSPECTIVE_API_VERSION,
    }
