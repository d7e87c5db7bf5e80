from guidance.pipeline.classifiers.output_classifier import OutputClassifier, is_conversation_ending
from guidance.pipeline.classifiers.pattern_classifier import (
    PatternClassifier,
    extract_age,
    has_crisis_signal,
    has_mandatory_report_signal,
    is_homicide_language,
    is_serious_situation,
    is_suicide_language,
)

__all__ = [
    "OutputClassifier",
    "PatternClassifier",
    "extract_age",
    "has_crisis_signal",
    "has_mandatory_report_signal",
    "is_conversation_ending",
    "is_homicide_language",
    "is_serious_situation",
    "is_suicide_language",
]
