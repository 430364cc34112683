"""Game constants for Marriage scorekeeping."""

# Roster bounds
MIN_PLAYERS = 2
MAX_PLAYERS = 8

# Scoring formula multipliers (applied together with the point value)
POWER_MULTIPLIER = 20
HANDS_MULTIPLIER = 10

# Money is kept to 2 decimal places
SCORE_DECIMALS = 2

# Defaults for new games
DEFAULT_POINT_VALUE = 0.5

# Game statuses
STATUS_ACTIVE = "active"
STATUS_DONE = "done"
GAME_STATUSES = (STATUS_ACTIVE, STATUS_DONE)

# Draft modes
DRAFT_NEW = "new"
DRAFT_EDIT = "edit"

# Draft input fields
FIELD_POWER = "power"
FIELD_HANDS = "hands"
INPUT_FIELDS = (FIELD_POWER, FIELD_HANDS)

# Share codes
GAME_CODE_LENGTH = 6
GAME_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

# Telegram API retry policy
API_MAX_ATTEMPTS = 5
API_BACKOFF_SECONDS = 1.0

# Listing
GAMES_LIST_LIMIT = 10
