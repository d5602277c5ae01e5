"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Hash lengths
SHA256_HEX_LENGTH = 64

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_TENANT_NAME_LENGTH = 100
MAX_DOMAIN_LENGTH = 100
MAX_PERSON_NAME_LENGTH = 50
MAX_PHONE_LENGTH = 32
MAX_ROLE_NAME_LENGTH = 50
MAX_ACTOR_LENGTH = 255
MAX_PLAN_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_BILLING_ADDRESS_LENGTH = 500
MAX_EXTERNAL_REF_LENGTH = 255

# Domain slugs
DOMAIN_PATTERN = r"^[a-z0-9-]+$"

# API keys
API_KEY_RANDOM_BYTES = 64
API_KEY_PREFIX_LIVE = "tc_live_"
API_KEY_PREFIX_TEST = "tc_test_"
API_KEY_PREFIX_MAX_LENGTH = 20
API_KEY_BODY_MIN_LENGTH = 80
API_KEY_BODY_MAX_LENGTH = 90

# Tenancy defaults
DEFAULT_API_RATE_LIMIT_PER_HOUR = 1000
DEFAULT_TRIAL_DAYS = 30

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 12

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Audit actor when no principal is bound
SYSTEM_ACTOR = "System"

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
