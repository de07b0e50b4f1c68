import fnmatch
import glob
import os
import re
from pathlib import Path
from typing import Iterable, List, Tuple

from claippy.conversation.context import URL_PREFIXES


def quote_filename(fname: str) -> str:
    """Quote filename if it contains spaces."""
    if " " in fname and '"' not in fname:
        fname = f'"{fname}"'
    return fname


def parse_quoted_filenames(args: str) -> List[str]:
    """Parse filenames from command arguments, handling quoted names."""
    filenames = re.findall(r"\"(.+?)\"|(\S+)", args)
    filenames = [name for sublist in filenames for name in sublist if name]
    return filenames


def is_url(word: str) -> bool:
    return word.startswith(URL_PREFIXES)


def has_glob_chars(word: str) -> bool:
    return any(c in word for c in "*?[]")


def expand_subdir(file_path: Path) -> List[Path]:
    """Expand a directory path to all files within it."""
    if file_path.is_file():
        return [file_path]

    if file_path.is_dir():
        return sorted(f for f in file_path.rglob("*") if f.is_file())

    return []


def normalize_path(path, root) -> str:
    """Path relative to ``root`` when inside it, otherwise absolute."""
    path = Path(os.path.abspath(os.path.expanduser(path)))
    try:
        return path.relative_to(os.path.abspath(root)).as_posix()
    except ValueError:
        return str(path)


def resolve_context_words(words: Iterable[str], root) -> Tuple[List[str], List[str]]:
    """
    Turn command arguments into context reference strings.

    URLs pass through unchanged, globs and directories expand to the files
    they contain.

    Returns:
        (refs, missing): reference strings, and the words that matched no file
    """
    refs = []
    missing = []
    for word in words:
        if is_url(word):
            refs.append(word)
            continue
        expanded = os.path.expanduser(word)
        if has_glob_chars(expanded):
            matches = [Path(p) for p in sorted(glob.glob(expanded, recursive=True))]
        else:
            matches = [Path(expanded)]
        files = []
        for match in matches:
            files.extend(expand_subdir(match))
        if not files:
            missing.append(word)
            continue
        refs.extend(normalize_path(f, root) for f in files)
    return list(dict.fromkeys(refs)), missing


def match_refs(word: str, literals: Iterable[str], root) -> List[str]:
    """Existing reference literals selected by ``word`` (exact, normalized or glob)."""
    literals = list(literals)
    if word in literals:
        return [word]
    if is_url(word):
        return []
    candidates = {word, normalize_path(word, root)}
    matched = [lit for lit in literals if lit in candidates]
    if matched:
        return matched
    if has_glob_chars(word):
        return [lit for lit in literals if fnmatch.fnmatch(lit, word)]
    prefix = normalize_path(word, root).rstrip("/") + "/"
    return [lit for lit in literals if lit.startswith(prefix)]


def format_command_result(io, command_name: str, success_message: str, error=None):
    """
    Format command execution result consistently.

    Args:
        io: InputOutput instance
        command_name: Name of the command
        success_message: Message for successful execution
        error: Exception if command failed

    Returns:
        Formatted result string
    """
    if error:
        io.tool_error(f"Error in {command_name}: {str(error)}")
        return f"Error: {str(error)}"
    return f"Successfully executed {command_name}: {success_message}"
