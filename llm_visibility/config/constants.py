"""
Default tables for LLM Visibility analysis.

Kept apart from the pydantic models so that the extractor modules can use the
defaults without importing the configuration layer, and so tuning a keyword
list never touches pipeline logic.
"""

# Generic product words that never identify a brand on their own.
# "Acme Gold Card" must not match every sentence that says "gold" or "card".
PRODUCT_STOPLIST = frozenset(
    {
        "card",
        "credit",
        "debit",
        "prepaid",
        "rewards",
        "cashback",
        "travel",
        "business",
        "personal",
        "premium",
        "elite",
        "gold",
        "silver",
        "platinum",
        "diamond",
        "black",
        "blue",
        "red",
        "green",
        "white",
    }
)

# Words that mark a product name; the words before the first one form the
# parent brand ("Acme Travel Card" -> "acme").
PRODUCT_INDICATORS = (
    "card",
    "credit",
    "debit",
    "rewards",
    "cashback",
    "travel",
    "business",
)

# Indicator words combined with the parent brand ("acme card", "acme credit").
KEY_PRODUCT_INDICATORS = ("card", "credit")

# Articles, auxiliaries and corporate suffixes dropped before building
# abbreviations and domain stems.
COMMON_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
        "been", "being", "have", "has", "had", "do", "does", "did", "will",
        "would", "could", "should", "may", "might", "must", "company", "inc",
        "incorporated", "corp", "corporation", "ltd", "limited", "llc",
        "group", "holdings", "enterprises", "industries", "international",
        "global",
    }
)

# Short English words a generated abbreviation must never equal.
ABBREVIATION_EXCLUSIONS = frozenset(
    {
        "am", "an", "as", "at", "be", "by", "do", "go", "he", "if", "in",
        "is", "it", "me", "my", "no", "of", "on", "or", "so", "to", "up",
        "us", "we", "all", "and", "any", "are", "but", "can", "for", "get",
        "has", "her", "his", "how", "its", "new", "not", "now", "one", "our",
        "out", "see", "the", "two", "use", "was", "way", "who", "you",
        "also", "best", "from", "have", "into", "just", "like", "more",
        "most", "only", "over", "some", "such", "than", "that", "them",
        "then", "they", "this", "very", "what", "when", "will", "with",
    }
)

MIN_ABBREVIATION_LENGTH = 2
MAX_ABBREVIATION_LENGTH = 15

# Trademark and copyright marks stripped for the normalized pattern.
TRADEMARK_SYMBOLS = "®™℠©"

# Shared-media platforms (PESO model). Subdomains match too.
SOCIAL_MEDIA_DOMAINS = frozenset(
    {
        "facebook.com", "fb.com", "twitter.com", "x.com", "t.co",
        "instagram.com", "linkedin.com", "youtube.com", "youtu.be",
        "tiktok.com", "snapchat.com", "pinterest.com", "reddit.com",
        "whatsapp.com", "wa.me", "telegram.org", "telegram.me", "t.me",
        "discord.com", "discord.gg", "twitch.tv", "vimeo.com",
        "dailymotion.com", "medium.com", "tumblr.com", "flickr.com",
        "imgur.com", "quora.com", "stackoverflow.com", "stackexchange.com",
        "threads.net", "mastodon.social", "meetup.com", "blogspot.com",
        "blogger.com", "wordpress.com", "substack.com",
    }
)

POSITIVE_KEYWORDS = (
    "best", "excellent", "great", "top", "leading", "trusted", "reliable",
    "recommended", "popular", "strong", "superior", "outstanding", "premier",
    "robust", "comprehensive", "flexible", "innovative", "powerful",
    "advanced", "seamless", "easy", "efficient", "effective", "preferred",
    "ideal", "renowned", "good", "solid", "proven", "well-regarded",
    "impressive", "valuable", "helpful", "useful", "favored",
)

NEGATIVE_KEYWORDS = (
    "bad", "poor", "worst", "weak", "limited", "lacking", "difficult",
    "complicated", "expensive", "costly", "slow", "unreliable",
    "problematic", "issues", "problems", "concerns", "drawbacks",
    "disadvantages", "limitations", "struggles", "fails", "inferior",
    "outdated", "questionable", "insufficient", "inadequate",
    "disappointing", "risky", "unstable", "inefficient", "ineffective",
)

NEGATION_WORDS = (
    "not", "no", "never", "none", "neither", "barely", "hardly", "scarcely",
    "rarely", "seldom",
)

# A negation word flips a keyword only within this many tokens before it:
# "not reliable" is negative, "best card with no annual fee" stays positive.
NEGATION_WINDOW = 3

# Score contribution of one keyword hit; a sentence score is clamped to [-1, 1].
SENTIMENT_KEYWORD_WEIGHT = 0.4

# |score| above this labels a brand positive/negative instead of neutral/mixed.
SENTIMENT_LABEL_THRESHOLD = 0.1

# Answer-source defaults
DEFAULT_MAX_CONCURRENT_REQUESTS = 5
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
MAX_PROMPT_LENGTH = 100_000
