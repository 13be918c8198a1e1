"""Lexical patterns shared by the friction and delight detectors."""

import re

# Sarcasm or frustration; checked before praise so these veto a praise match
SARCASM_NEGATION_PATTERNS = [
    re.compile(r"i'?m done trying", re.IGNORECASE),
    re.compile(r"done with this", re.IGNORECASE),
    re.compile(r"great[,.]?\s*(another|more|yet)", re.IGNORECASE),
    re.compile(r"thanks for nothing", re.IGNORECASE),
    re.compile(r"perfect[,.]?\s*(now|another|more)", re.IGNORECASE),
    re.compile(r"not working", re.IGNORECASE),
    re.compile(r"still (not|broken|failing)", re.IGNORECASE),
    re.compile(r"sarcasti", re.IGNORECASE),
]

# Matched against lowercased text
PRAISE_PATTERNS = [
    re.compile(r"\bthanks?\b"),
    re.compile(r"\bthank you\b"),
    re.compile(r"\bperfect\b"),
    re.compile(r"\bgreat\b"),
    re.compile(r"\bawesome\b"),
    re.compile(r"\bexcellent\b"),
    re.compile(r"\blooks good\b"),
    re.compile(r"\bthat works\b"),
    re.compile(r"\ball (done|set|good)\b"),
    re.compile(r"\bnice work?\b"),
    re.compile(r"\bgood job\b"),
    re.compile(r"\bwell done\b"),
    re.compile(r"\bbrilliant\b"),
    re.compile(r"\bamazing\b"),
    re.compile(r"\bfantastic\b"),
    re.compile(r"\bwonderful\b"),
    re.compile(r"\blgtm\b"),
    re.compile(r"\bship it\b"),
    re.compile("\U0001F44D"),  # thumbs up
    re.compile("\U0001F389"),  # party popper
    re.compile("✅"),      # check mark
]

# Matched against lowercased text
CORRECTION_PATTERNS = [
    re.compile(r"\bno\b"),
    re.compile(r"\bwrong\b"),
    re.compile(r"\bincorrect\b"),
    re.compile(r"\bnot what\b"),
    re.compile(r"\binstead\b"),
    re.compile(r"\bactually\b"),
    re.compile(r"\bshould be\b"),
    re.compile(r"\bchange\b"),
    re.compile(r"\bfix\b"),
    re.compile(r"\btry again\b"),
    re.compile(r"\bretry\b"),
    re.compile(r"\bplease\b.*\binstead\b"),
    re.compile(r"\bwhy\b.*\?$", re.IGNORECASE),
    re.compile(r"\bwhat went wrong\b", re.IGNORECASE),
    re.compile(r"\bwhat happened\b", re.IGNORECASE),
    re.compile(r"\bcan you (fix|try|redo)\b", re.IGNORECASE),
]

ACKNOWLEDGMENT_PATTERNS = [
    re.compile(r"^ok$"),
    re.compile(r"^okay$"),
    re.compile(r"^k$"),
    re.compile(r"^yes$"),
    re.compile(r"^yep$"),
    re.compile(r"^sure$"),
    re.compile(r"^go$"),
    re.compile(r"^go ahead$"),
    re.compile(r"^continue$"),
]


def _any_match(patterns: list[re.Pattern[str]], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def is_sarcastic(text: str) -> bool:
    return _any_match(SARCASM_NEGATION_PATTERNS, text)


def has_praise_token(text: str) -> bool:
    """Praise vocabulary present, ignoring sarcasm."""
    return _any_match(PRAISE_PATTERNS, text.lower())


def has_genuine_praise(text: str) -> bool:
    """Praise or success phrase that is not negated or sarcastic."""
    if is_sarcastic(text):
        return False
    return has_praise_token(text)


def is_acknowledgment(text: str) -> bool:
    """Short acknowledgment such as "ok" or "yes"."""
    return _any_match(ACKNOWLEDGMENT_PATTERNS, text.lower().strip())


def is_minimal_acknowledgment(text: str) -> bool:
    """Too short or too generic to count as the user stepping in."""
    lower = text.lower().strip()
    if len(lower) < 10:
        return True
    return is_acknowledgment(lower)


def is_user_correction(text: str) -> bool:
    """
    Whether a user message reads as a correction.

    Genuine praise and acknowledgments never count. Sarcastic praise
    ("thanks for nothing") does not veto, so it falls through to the
    correction patterns and the 50 character rule.
    """
    lower = text.lower().strip()
    if len(lower) < 5:
        return False
    if has_genuine_praise(lower) or is_acknowledgment(lower):
        return False
    if _any_match(CORRECTION_PATTERNS, lower):
        return True
    return len(lower) > 50
