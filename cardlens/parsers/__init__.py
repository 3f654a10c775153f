from cardlens.parsers.rules import ExtractionRule, RuleHit, first_match
from cardlens.parsers.text_fields import TextFieldExtractor, extract_fields
from cardlens.parsers.zones import derive_zones, normalize_word, tokenize_recognized_text

__all__ = [
    "ExtractionRule",
    "RuleHit",
    "TextFieldExtractor",
    "derive_zones",
    "extract_fields",
    "first_match",
    "normalize_word",
    "tokenize_recognized_text",
]
