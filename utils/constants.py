"""Domain constants for the draw format (5 primary numbers plus one bonus number)."""

PRIMARY_COUNT = 5  # Numbers in the primary set
PRIMARY_MIN = 1
PRIMARY_MAX = 69
BONUS_MIN = 1
BONUS_MAX = 26
RECENT_WINDOW = 20  # Draws kept for recency-sensitive estimators
