"""Library-wide constants.

This module centralizes the fixed values of the Messenger Platform schema
and the defaults used when a Sender or webhook is constructed without
explicit overrides.
"""

# =============================================================================
# Facebook API
# =============================================================================

# Facebook Graph API version
FACEBOOK_GRAPH_API_VERSION = "v18.0"

# Send API endpoint used when no endpoint override is supplied
DEFAULT_MESSAGES_ENDPOINT = (
    f"https://graph.facebook.com/{FACEBOOK_GRAPH_API_VERSION}/me/messages"
)

# Query parameter carrying the page access token on every Send API call
ACCESS_TOKEN_PARAM = "access_token"

# =============================================================================
# HTTP Timeout Configuration
# =============================================================================

# Timeout for Facebook Graph API calls (seconds)
FACEBOOK_API_TIMEOUT_SECONDS = 10.0

# =============================================================================
# Webhook Verification
# =============================================================================

# Query parameters of the GET verification handshake
VERIFY_TOKEN_PARAM = "hub.verify_token"
CHALLENGE_PARAM = "hub.challenge"

# account_linking.status value that marks a successful link
ACCOUNT_LINKED_STATUS = "linked"

# =============================================================================
# Logging
# =============================================================================

# Maximum number of response body characters included in log records
LOG_RESPONSE_BODY_CHARS = 500
