"""Natural-language capture: date parsing, voice commands and categorisation."""

from remind.nlp.categorization import CategoryClassifier, CategoryResult, analyze_text_for_category
from remind.nlp.natural_language import ParsedReminder, parse_natural_language
from remind.nlp.voice_commands import VoiceCommandInterpreter, parse_command, split_into_sentences

__all__ = [
    "CategoryClassifier",
    "CategoryResult",
    "ParsedReminder",
    "VoiceCommandInterpreter",
    "analyze_text_for_category",
    "parse_command",
    "parse_natural_language",
    "split_into_sentences",
]
