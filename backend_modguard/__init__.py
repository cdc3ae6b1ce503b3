"""
Backend ModGuard: multi-source risk decision engine for chat moderation.

Normalizes obfuscated text, classifies its content type, fans out to independent
scoring sources, combines their votes into one calibrated toxicity decision, and
maps that decision onto a per-violation escalation ladder.
"""

__version__ = "0.1.0"
