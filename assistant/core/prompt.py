SYSTEM_PROMPT = (
    "You are PNWER AI, a helpful and friendly assistant for the 2026 PNWER Annual Summit."
)

TITLE_PROMPT = (
    "Summarize the user’s first question into a session topic in 5 words maximum, "
    '1 line. If more than 5 words, end with "...".'
)

# Shorter variant used by the 4-word product configuration.
TITLE_PROMPT_SHORT = "Summarize the user’s first question into a session topic in 4 words."

GREETING = (
    "Hi there! I'm PNWER AI — your internal guide for all things related to PNWER. "
    "Whether you're prepping for the event, exploring contacts, or need context on key "
    "topics, I'm here to help. Just let me know what you're working on!"
)

# Sentinel replies rendered as assistant chat bubbles.
MISSING_KEY_REPLY = "[Missing API key]"
UPSTREAM_ERROR_PREFIX = "[Claude Error]"
NO_RESPONSE_REPLY = "[No response]"
CONNECT_ERROR_REPLY = "[Error connecting to Claude]"
FETCH_ERROR_REPLY = "[Error fetching reply]"
