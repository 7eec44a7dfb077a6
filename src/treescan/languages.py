"""Language tags for scanned files."""

import os

FILE_NAME_LANGUAGES = {
    'dockerfile': 'dockerfile',
    'makefile': 'makefile',
    'gnumakefile': 'makefile',
    'package.json': 'json',
    'cmakelists.txt': 'cmake',
    'gemfile': 'ruby',
    'rakefile': 'ruby',
    'jenkinsfile': 'groovy',
    '.gitignore': 'ignore',
    '.vscodeignore': 'ignore',
    '.dockerignore': 'ignore',
}

EXTENSION_LANGUAGES = {
    '.js': 'javascript',
    '.mjs': 'javascript',
    '.cjs': 'javascript',
    '.jsx': 'javascript',
    '.ts': 'typescript',
    '.tsx': 'typescript',
    '.json': 'json',
    '.md': 'markdown',
    '.py': 'python',
    '.java': 'java',
    '.html': 'html',
    '.htm': 'html',
    '.css': 'css',
    '.scss': 'scss',
    '.less': 'less',
    '.vue': 'vue',
    '.php': 'php',
    '.rb': 'ruby',
    '.go': 'go',
    '.rs': 'rust',
    '.swift': 'swift',
    '.kt': 'kotlin',
    '.c': 'c',
    '.cpp': 'cpp',
    '.h': 'c',
    '.hpp': 'cpp',
    '.cs': 'csharp',
    '.sh': 'shell',
    '.bash': 'shell',
    '.zsh': 'shell',
    '.yml': 'yaml',
    '.yaml': 'yaml',
    '.toml': 'toml',
    '.xml': 'xml',
    '.sql': 'sql',
    '.graphql': 'graphql',
    '.proto': 'protobuf',
    '.lua': 'lua',
}

DEFAULT_LANGUAGE = 'plaintext'


def detect_language(file_name: str) -> str:
    """Map a file name to a language tag, ``plaintext`` if unknown."""
    base = os.path.basename(file_name.replace('\\', '/')).lower()
    if base in FILE_NAME_LANGUAGES:
        return FILE_NAME_LANGUAGES[base]
    # Dockerfile.dev, Dockerfile.prod
    if base.startswith('dockerfile.'):
        return 'dockerfile'
    return EXTENSION_LANGUAGES.get(os.path.splitext(base)[1], DEFAULT_LANGUAGE)
