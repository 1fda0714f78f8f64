"""Centralized application constants — single source of truth for hardcoded values."""

# --- Session ---
COOKIE_NAME = "plzdm_session"

# --- OAuth ---
OAUTH_STATE_TTL = 600  # seconds (10 min)

# --- Twitter API URLs (v1.1, OAuth 1.0a user context) ---
TWITTER_REQUEST_TOKEN_URL = "https://api.twitter.com/oauth/request_token"
TWITTER_AUTHORIZE_URL = "https://api.twitter.com/oauth/authorize"
TWITTER_ACCESS_TOKEN_URL = "https://api.twitter.com/oauth/access_token"
TWITTER_WELCOME_MESSAGES_URL = "https://api.twitter.com/1.1/direct_messages/welcome_messages/new.json"

# --- Twitter API error codes ---
TWITTER_RATE_LIMIT_CODE = 88
RATE_LIMIT_RESET_HEADER = "x-rate-limit-reset"

# --- Welcome messages ---
MAX_CTAS = 3
MAX_TEXT_LENGTH = 10000
MAX_URL_LENGTH = 2048
CTA_TYPE_WEB_URL = "web_url"
CTA_FIELDS = (("label_1", "link_1"), ("label_2", "link_2"), ("label_3", "link_3"))

# --- Stripe ---
SUBSCRIPTION_STATUSES = (
    "trialing",
    "active",
    "canceled",
    "incomplete",
    "incomplete_expired",
    "past_due",
    "unpaid",
)
ENTITLED_SUBSCRIPTION_STATUSES = ("trialing", "active")

RELEVANT_STRIPE_EVENTS = {
    "product.created",
    "product.updated",
    "price.created",
    "price.updated",
    "checkout.session.completed",
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "charge.succeeded",
}

# --- HTTP Client ---
HTTP_TOTAL_TIMEOUT = 30  # seconds
HTTP_CONNECT_TIMEOUT = 10  # seconds
