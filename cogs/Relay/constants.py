# --- Reactions ---
POSITIVE_REACTION = "✅"  # approve vote
NEGATIVE_REACTION = "❌"  # reject vote
SENT_REACTION = "📨"      # reply was relayed to the requester

# --- Timing ---
# Used both for the approval vote and for the reply relay window (seconds)
REACTION_TIMEOUT = 10 * 60

# --- Replies ---
UNACQUAINTED_MESSAGE = "Umm... have I made your acquaintance?"
DELEGATE_ONLY_MESSAGE = "This command is only available to delegates."
UNKNOWN_COMMITTEE_MESSAGE = "Sorry, but I'm not sure which committee you're on."
INVALID_REACTION_MESSAGE = "Invalid reaction; rejecting request."
NO_CONSENSUS_MESSAGE = f"No consensus reached in {REACTION_TIMEOUT // 60} minutes; rejecting request."
