# Error codes returned in the `code` field of JSON API error responses.

BULLETIN_NETWORK_FAILURE = 1
BULLETIN_AUTH_ERROR = 2
BULLETIN_USAGE_ERROR = 3
BULLETIN_INVALID_IDEMPOTENCY_KEY = 4
BULLETIN_UNKNOWN_ERROR = 99
