DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3

AGAIN_EASE_PENALTY = 0.20
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15

HARD_GROWTH = 1.2      # hard: interval * 1.2, rounded up
EASY_BONUS = 1.3       # easy: interval * ease * 1.3

MAX_INTERVAL_DAYS = 365
FIRST_INTERVAL_DAYS = {
    "hard": 1,
    "good": 1,
    "easy": 4,         # longest initial
}

# Server side: lost races on the same (learner, flashcard) row
CONFLICT_RETRY_ATTEMPTS = 5
CONFLICT_RETRY_INITIAL_WAIT = 0.02  # seconds
CONFLICT_RETRY_MAX_WAIT = 0.5       # seconds

# Client side: session controller retries for retryable errors
CLIENT_RETRY_ATTEMPTS = 3
CLIENT_RETRY_INITIAL_WAIT = 0.5  # seconds
CLIENT_RETRY_MAX_WAIT = 8.0      # seconds
CLIENT_REQUEST_TIMEOUT = 10.0    # seconds
