"""Pattern-based input classifier: no model calls, pure function of the text.

Labels come from an ordered ``(label, predicate)`` table evaluated
first-match-wins. The crisis and mandatory-report signals are computed
outside that table on every call, so a ``normal`` message can still carry
``crisis_signal=True``.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Pattern, Tuple

from guidance.pipeline.types import ClassificationLabel, InputClassification

logger = logging.getLogger(__name__)


def _words(*fragments: str) -> Pattern[str]:
    """Case-insensitive alternation anchored on word boundaries."""
    return re.compile(r"\b(?:" + "|".join(fragments) + r")\b", re.IGNORECASE)


def _exact(*phrases: str) -> Pattern[str]:
    return re.compile(r"^(?:" + "|".join(phrases) + r")$", re.IGNORECASE)


ABUSIVE_PATTERN = _words(
    r"fuck\w*", r"shit", r"bitch", r"asshole", r"damn you", r"screw you",
    r"hate god", r"god is dead", r"stupid religion", r"religious idiots", r"go to hell",
)

SPAM_PATTERN = _words(
    r"buy now", r"click here", r"viagra", r"casino", r"lottery", r"crypto",
    r"investment opportunity", r"make money", r"free gift",
)

OFF_TOPIC_PATTERN = _words(
    r"weather", r"sports scores", r"stock prices", r"movie times", r"recipe for",
    r"how to cook", r"math problem", r"homework help", r"write my essay", r"do my homework",
)

GREETING_PATTERN = _exact(
    r"test", r"testing", r"hello", r"hi", r"hey", r"sup", r"yo",
)

BRIEF_FOLLOW_UP_PATTERN = _exact(
    r"thanks", r"thank you", r"thanks so much", r"thank you so much", r"thx", r"ty",
    r"ok", r"okay", r"k", r"amen", r"got it", r"i see", r"yes", r"no", r"sure",
    r"will do", r"that helps", r"makes sense", r"cool", r"great", r"awesome",
    r"thanks pastor", r"thank you pastor", r"god bless", r"bless you",
)

CRISIS_PATTERN = _words(
    r"suicid\w*", r"kill myself", r"end my life", r"want to die", r"wanna die",
    r"self[- ]harm\w*", r"hurt myself", r"cut myself", r"cutting myself",
    r"abuse\w*", r"being hurt", r"molest\w*", r"assault\w*", r"overdos\w*",
    r"blood", r"bleeding", r"die", r"sacrifice myself", r"no reason to live",
    r"can'?t go on",
)

# Scriptural phrases that reuse crisis vocabulary. Checked before the crisis
# keywords; a hit forces crisis_signal to False.
BIBLICAL_CONTEXT_PATTERN = _words(
    r"issue of blood", r"blood of (?:christ|jesus|the lamb|the covenant)",
    r"(?:his|christ'?s|jesus'?) (?:precious )?blood", r"precious blood", r"shed blood",
    r"shedding of blood", r"washed in the blood", r"covered by the blood",
    r"die to (?:self|sin|myself)", r"dying to (?:self|sin)", r"died for (?:us|me|our sins|my sins)",
    r"to live is christ(?:,)? (?:and )?to die is gain", r"living sacrifice",
    r"sacrifice of (?:jesus|christ|isaac)", r"lamb of god", r"crucifi\w*",
    r"passover", r"atonement", r"communion", r"lord'?s supper", r"martyr\w*",
    r"abraham and isaac",
)

ABUSE_PATTERN = _words(
    r"abus\w*", r"hits me", r"hit me", r"hitting me", r"beats me", r"beat me", r"beating me",
    r"hurts me", r"hurt me", r"touches me", r"touched me", r"touching me",
    r"molest\w*", r"rape\w*", r"sexually", r"chokes me", r"choked me", r"locks me",
    r"kicks me", r"kicked me", r"slaps me", r"slapped me",
)

MINOR_AGE_PATTERN = _words(
    r"i'?m a (?:kid|child|minor|teen|teenager)", r"i am a (?:kid|child|minor|teen|teenager)",
    r"under 18", r"underage", r"middle school", r"high school", r"junior high",
    r"(?:\d{1,2})(?:st|nd|rd|th) grade", r"my (?:mom|dad|mother|father|parents?) (?:won'?t|don'?t) let me",
)

AGE_PATTERN = re.compile(
    r"\b(?:i'?m|i am)\s+(\d{1,3})(?:\s*(?:years?|yrs?)\s*old)?\b",
    re.IGNORECASE,
)

SUICIDE_PATTERN = _words(
    r"suicid\w*", r"kill myself", r"end my life", r"end it all", r"take my (?:own )?life",
    r"want to die", r"wanna die", r"better off dead", r"no reason to live",
    r"don'?t want to (?:live|be alive|wake up)", r"can'?t go on",
)

HOMICIDE_PATTERN = _words(
    r"homicid\w*",
    r"(?:kill|murder|shoot|stab|strangle|poison)\s+(?:him|her|them|someone|somebody|"
    r"everyone|everybody|people|my\s+(?:wife|husband|mom|dad|mother|father|boss|"
    r"brother|sister|son|daughter|neighbor|ex|boyfriend|girlfriend|family))",
    r"(?:want|going|plan(?:ning)?)\s+to\s+(?:hurt|harm)\s+(?:him|her|them|someone|somebody|others|people)",
    r"make (?:him|her|them) pay",
)

SERIOUS_PATTERN = _words(
    r"divorc\w*", r"separat(?:ed|ion)", r"affair", r"cheat(?:ed|ing) on",
    r"addict\w*", r"alcohol\w*", r"drinking problem", r"relapse\w*", r"porn\w*",
    r"grief", r"griev\w*", r"passed away", r"funeral", r"miscarri\w*", r"stillborn",
    r"cancer", r"terminal", r"diagnos\w*", r"lost my (?:job|house|home|child|son|daughter|wife|husband)",
    r"laid off", r"bankrupt\w*", r"foreclos\w*", r"homeless", r"depress\w*",
    r"anxiety", r"panic attacks?", r"eating disorder", r"custody", r"prison", r"jail", r"arrested",
)

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})
_TRAILING_PUNCTUATION = " \t\r\n.!?,;:~"

Predicate = Callable[[str], bool]


def _normalize(text: str) -> str:
    return text.translate(_APOSTROPHES)


def _phrase(text: str) -> str:
    """Trimmed text with trailing punctuation removed, for exact-phrase rules."""
    return " ".join(_normalize(text).strip().rstrip(_TRAILING_PUNCTUATION).split())


def extract_age(text: str) -> Optional[int]:
    """Age stated as "i'm 15" / "im 15" / "i am 15 years old"; None outside 0..99."""
    match = AGE_PATTERN.search(_normalize(text))
    if match is None:
        return None
    age = int(match.group(1))
    if 0 <= age <= 99:
        return age
    return None


def is_biblical_context(text: str) -> bool:
    return BIBLICAL_CONTEXT_PATTERN.search(_normalize(text)) is not None


def has_crisis_signal(text: str) -> bool:
    normalized = _normalize(text)
    if BIBLICAL_CONTEXT_PATTERN.search(normalized):
        return False
    return CRISIS_PATTERN.search(normalized) is not None


def has_mandatory_report_signal(text: str, extracted_age: Optional[int] = None) -> bool:
    normalized = _normalize(text)
    if ABUSE_PATTERN.search(normalized) is None:
        return False
    if MINOR_AGE_PATTERN.search(normalized):
        return True
    return extracted_age is not None and extracted_age < 18


def is_suicide_language(text: str) -> bool:
    return SUICIDE_PATTERN.search(_normalize(text)) is not None


def is_homicide_language(text: str) -> bool:
    return HOMICIDE_PATTERN.search(_normalize(text)) is not None


def is_serious_situation(text: str) -> bool:
    return SERIOUS_PATTERN.search(_normalize(text)) is not None


def _search(pattern: Pattern[str]) -> Predicate:
    return lambda text: pattern.search(_normalize(text)) is not None


def _full(pattern: Pattern[str]) -> Predicate:
    return lambda text: pattern.match(_phrase(text)) is not None


LABEL_RULES: Tuple[Tuple[ClassificationLabel, Pattern[str], Predicate], ...] = (
    (ClassificationLabel.ABUSIVE, ABUSIVE_PATTERN, _search(ABUSIVE_PATTERN)),
    (ClassificationLabel.SPAM, SPAM_PATTERN, _search(SPAM_PATTERN)),
    (ClassificationLabel.OFF_TOPIC, OFF_TOPIC_PATTERN, _search(OFF_TOPIC_PATTERN)),
    (ClassificationLabel.TRIVIAL_GREETING, GREETING_PATTERN, _full(GREETING_PATTERN)),
    (ClassificationLabel.BRIEF_FOLLOW_UP, BRIEF_FOLLOW_UP_PATTERN, _full(BRIEF_FOLLOW_UP_PATTERN)),
)


class PatternClassifier:
    """Deterministic classifier over the ordered label table and the two signals."""

    def __init__(
        self,
        rules: Tuple[Tuple[ClassificationLabel, Pattern[str], Predicate], ...] = LABEL_RULES,
    ) -> None:
        self._rules = rules

    def classify(self, text: str) -> InputClassification:
        label = ClassificationLabel.NORMAL
        matched: Optional[str] = None
        for rule_label, pattern, predicate in self._rules:
            if predicate(text):
                label = rule_label
                matched = _describe_match(pattern, text)
                break

        age = extract_age(text)
        result = InputClassification(
            label=label,
            crisis_signal=has_crisis_signal(text),
            mandatory_report_signal=has_mandatory_report_signal(text, age),
            extracted_age=age,
            matched_rule=matched,
        )
        if label is not ClassificationLabel.NORMAL:
            logger.debug("PatternClassifier: label=%s matched=%r", label.value, matched)
        return result


def _describe_match(pattern: Pattern[str], text: str) -> str:
    normalized = _normalize(text)
    match = pattern.search(normalized) or pattern.match(_phrase(text))
    return match.group(0).lower() if match else pattern.pattern
