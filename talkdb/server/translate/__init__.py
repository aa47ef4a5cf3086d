"""
Natural-language to SQL translation for TalkDB.
"""

from .client import SqlTranslator, TranslationError, build_user_message, strip_code_fences

__all__ = ["SqlTranslator", "TranslationError", "build_user_message", "strip_code_fences"]
