POSITIVE_REACTION = "✅"

WRONG_GUILD_MESSAGE = "I'm not configured to work here."
UNKNOWN_COMMITTEE_NAME_MESSAGE = "Sorry, I couldn't find a committee by that name."
