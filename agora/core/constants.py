"""Application constants.

This module contains magic strings and numbers used throughout the application.
Centralizing these values makes them easier to maintain and modify.
"""

# Poll question types
# Each type has its own validation and tally path in the vote services
QUESTION_SINGLE_CHOICE = "single-choice"
QUESTION_RANKED_CHOICE = "ranked-choice"
QUESTION_FREE_TEXT = "free-text"
QUESTION_TYPES = (QUESTION_SINGLE_CHOICE, QUESTION_RANKED_CHOICE, QUESTION_FREE_TEXT)

# Poll kinds (simple = text options, complex = articles/persons with images)
POLL_TYPES = ("simple", "complex")

# Poll lifecycle, in the only order transitions are allowed to move
POLL_STATUS_ACTIVE = "active"
POLL_STATUS_CLOSED = "closed"
POLL_STATUS_ARCHIVED = "archived"
POLL_STATUSES = (POLL_STATUS_ACTIVE, POLL_STATUS_CLOSED, POLL_STATUS_ARCHIVED)

# Who may see results, and when
RESULTS_ALWAYS = "always"
RESULTS_AFTER_VOTE = "after_vote"
RESULTS_AFTER_DEADLINE = "after_deadline"
RESULTS_VISIBILITIES = (RESULTS_ALWAYS, RESULTS_AFTER_VOTE, RESULTS_AFTER_DEADLINE)

# Answer types for options on complex polls
ANSWER_TYPES = ("person", "article", "custom")

# Poll field limits
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
OPTION_TEXT_MAX_LENGTH = 500
FREE_TEXT_MAX_LENGTH = 1000
MIN_POLL_OPTIONS = 2

# Rank given to single-choice and free-text rows so uniqueness keys are never NULL
DEFAULT_RANK_POSITION = 1

# Maximum plausible population for any location (10 billion)
MAX_REASONABLE_POPULATION = 10_000_000_000

# Thumbnail width requested from the Wikipedia page images API
WIKIPEDIA_THUMBNAIL_SIZE = 500

# JWT Token Configuration
# Token expiration time in minutes (8 hours)
ACCESS_TOKEN_EXPIRE_MINUTES = 480
