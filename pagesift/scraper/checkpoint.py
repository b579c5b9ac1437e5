"""Bot-protection interstitial detection.

A page is a *checkpoint* when the HTML or title carries one of the phrases
that protection vendors put on their challenge pages.  Rules are checked
in table order and the first match wins, so vendor-specific signatures
must stay ahead of the generic ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from pagesift.scraper.models import CheckpointType, CheckpointVerdict


@dataclass(frozen=True)
class CheckpointRule:
    patterns: Tuple[str, ...]
    type: CheckpointType
    message: str


# ---------------------------------------------------------------------------
# Pattern table (order matters)
# ---------------------------------------------------------------------------
CHECKPOINT_PATTERNS: Tuple[CheckpointRule, ...] = (
    CheckpointRule(
        patterns=(
            "vercel security checkpoint",
            "failed to verify your browser",
            "code 21",
        ),
        type=CheckpointType.VERCEL_SECURITY,
        message=(
            "This website uses Vercel's security protection that blocks "
            "automated access. Try visiting the site directly in your browser first."
        ),
    ),
    CheckpointRule(
        patterns=(
            "cloudflare",
            "checking your browser",
            "please wait while we check your browser",
            "ray id:",
            "cf-ray",
        ),
        type=CheckpointType.CLOUDFLARE,
        message=(
            "This website uses Cloudflare's bot protection. The site may be "
            "temporarily blocking automated requests."
        ),
    ),
    CheckpointRule(
        patterns=(
            "security check",
            "bot protection",
            "automated requests",
            "please verify you are human",
        ),
        type=CheckpointType.BOT_PROTECTION,
        message="This website has bot protection enabled that prevents automated access.",
    ),
    CheckpointRule(
        patterns=("access denied", "forbidden", "403 forbidden"),
        type=CheckpointType.ACCESS_DENIED,
        message="Access to this website is currently restricted or blocked.",
    ),
    CheckpointRule(
        patterns=("rate limit", "too many requests", "429"),
        type=CheckpointType.RATE_LIMITED,
        message="This website is rate limiting requests. Please try again later.",
    ),
)

NOT_A_CHECKPOINT = CheckpointVerdict(
    is_checkpoint=False, type=CheckpointType.NONE, message=""
)


def classify(
    html: str,
    title: str,
    patterns: Sequence[CheckpointRule] = CHECKPOINT_PATTERNS,
) -> CheckpointVerdict:
    """Classify a page as a bot-protection checkpoint or real content.

    Args:
        html: Raw page HTML.
        title: Page title (may be empty).
        patterns: Ordered rule table; the first rule with any pattern found
            in either input decides the verdict.

    Returns:
        A :class:`CheckpointVerdict`; ``is_checkpoint`` is ``False`` and
        ``type`` is :attr:`CheckpointType.NONE` when nothing matches.
    """
    lower_html = (html or "").lower()
    lower_title = (title or "").lower()

    for rule in patterns:
        if any(p in lower_html or p in lower_title for p in rule.patterns):
            return CheckpointVerdict(
                is_checkpoint=True, type=rule.type, message=rule.message
            )
    return NOT_A_CHECKPOINT
