"""Import extraction used to fill ``FileInfo.imports``."""

import ast
import logging
import re
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


class CodeAnalyzer:
    """Extracts import targets from source files."""

    # import x from 'y', import {a} from "y", export * from 'y'
    _FROM_PATTERN = re.compile(r'''(?:import|export)\s[^'";]*?\bfrom\s*['"]([^'"]+)['"]''', re.DOTALL)
    # import 'side-effect'
    _BARE_IMPORT_PATTERN = re.compile(r'''^\s*import\s*['"]([^'"]+)['"]''', re.MULTILINE)
    # require('x') and import('x')
    _CALL_PATTERN = re.compile(r'''\b(?:require|import)\s*\(\s*['"]([^'"]+)['"]\s*\)''')

    @staticmethod
    def analyze_python(content: str) -> List[str]:
        """Extract imported module names from Python code.

        Relative imports keep their leading dots (``from ..pkg import x`` gives
        ``..pkg``). Code that does not parse yields no imports.
        """
        imports = []
        try:
            tree = ast.parse(content)
        except (SyntaxError, ValueError):
            return imports

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                imports.extend(alias.name for alias in node.names)
            elif isinstance(node, ast.ImportFrom):
                prefix = "." * (node.level or 0)
                if node.module:
                    imports.append(prefix + node.module)
                elif prefix:
                    imports.extend(prefix + alias.name for alias in node.names)

        return imports

    @classmethod
    def analyze_javascript(cls, content: str) -> List[str]:
        """Extract module specifiers from JavaScript/TypeScript code."""
        found = []
        for pattern in (cls._FROM_PATTERN, cls._BARE_IMPORT_PATTERN, cls._CALL_PATTERN):
            for match in pattern.finditer(content):
                found.append((match.start(), match.group(1)))

        # Source order, first occurrence wins
        imports = []
        for _, target in sorted(found):
            if target not in imports:
                imports.append(target)
        return imports


def scan_imports(path: Union[str, Path], content: str, language: str) -> List[str]:
    """Default dependency scanner: ``(path, content, language) -> imports``."""
    if language == 'python':
        return CodeAnalyzer.analyze_python(content)
    if language in ('javascript', 'typescript', 'vue'):
        return CodeAnalyzer.analyze_javascript(content)
    logger.debug(f"No import extraction for {language} ({path})")
    return []
