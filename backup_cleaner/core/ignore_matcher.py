"""Wildcard ignore rules for customer folders and backup files."""

import logging
import os
import re
from typing import Iterable, List

from .models import IgnoreLoadResult, IgnoreRule, LoadError, LoadErrorKind


DEFAULT_IGNORE_CONTENT = """# Backup Cleaner - ignore file
# ============================
# Add patterns for folders or files that should be skipped.
# One pattern per line. Lines starting with # are comments.
#
# Supported wildcards:
#   *  = zero or more characters
#   ?  = exactly one character
#
# Matching is case-insensitive and applies to the whole name.
#
# Examples:
#   _*           = ignore everything starting with an underscore
#   temp*        = ignore everything starting with 'temp'
#   *.log        = ignore all .log files
#   test_?       = ignore test_1, test_2, etc.
#   _Archive     = ignore exactly the folder or file '_Archive'
#
# Active patterns below:

_*
"""


class IgnoreMatcher:
    """Loads ignore patterns and classifies folder and file names."""

    def __init__(self, ignore_file_path: str):
        """Initialize ignore matcher.

        Args:
            ignore_file_path: Path to the UTF-8 ignore file.
        """
        self.ignore_file_path = os.path.expanduser(ignore_file_path)
        self.logger = logging.getLogger(__name__)

    def load(self) -> IgnoreLoadResult:
        """Load ignore rules, creating the default ignore file when absent.

        Returns:
            IgnoreLoadResult with the rules in file order. On any failure the
            rule list is empty (nothing is ignored) and ``error`` is set.
        """
        if not os.path.exists(self.ignore_file_path):
            try:
                self.create_default_ignore_file()
            except OSError as e:
                self.logger.warning(f"Could not create ignore file {self.ignore_file_path}: {e}")
                return IgnoreLoadResult(
                    rules=[],
                    error=LoadError(LoadErrorKind.MISSING, self.ignore_file_path, str(e))
                )

        try:
            with open(self.ignore_file_path, 'r', encoding='utf-8-sig') as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Could not read ignore file {self.ignore_file_path}: {e}")
            return IgnoreLoadResult(
                rules=[],
                error=LoadError(LoadErrorKind.UNREADABLE, self.ignore_file_path, str(e))
            )

        rules = self.parse_patterns(lines)
        self.logger.debug(f"Loaded {len(rules)} ignore patterns from {self.ignore_file_path}")
        return IgnoreLoadResult(rules=rules)

    @classmethod
    def parse_patterns(cls, lines: Iterable[str]) -> List[IgnoreRule]:
        """Compile every non-empty, non-comment line into a rule."""
        rules = []
        for line in lines:
            pattern = line.strip()
            if not pattern or pattern.startswith('#'):
                continue
            rules.append(cls.compile_pattern(pattern))
        return rules

    @staticmethod
    def compile_pattern(pattern: str) -> IgnoreRule:
        """Translate a ``*``/``?`` wildcard pattern into a regex matched against the whole name.

        All characters other than the two wildcards match literally.
        """
        escaped = re.escape(pattern).replace(r'\*', '.*').replace(r'\?', '.')
        return IgnoreRule(
            raw_pattern=pattern,
            compiled_matcher=re.compile(escaped, re.IGNORECASE | re.DOTALL)
        )

    @staticmethod
    def should_ignore(name: str, rules: List[IgnoreRule]) -> bool:
        """Check whether a folder or file name matches any ignore rule."""
        if not rules:
            return False
        return any(rule.compiled_matcher.fullmatch(name) for rule in rules)

    def create_default_ignore_file(self) -> None:
        """Write the default ignore file with usage comments and the ``_*`` rule."""
        directory = os.path.dirname(self.ignore_file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(self.ignore_file_path, 'w', encoding='utf-8') as f:
            f.write(DEFAULT_IGNORE_CONTENT)

        self.logger.info(f"Created default ignore file: {self.ignore_file_path}")
