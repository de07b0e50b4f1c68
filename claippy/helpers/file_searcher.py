"""
File search utilities for claippy.

Config and dotenv files are looked up in the home directory, the git root
and the current directory, in that order.
"""

from pathlib import Path
from typing import List, Optional


def generate_search_path_list(
    default_file: str, git_root: Optional[str], command_line_file: Optional[str]
) -> List[str]:
    """
    Generate a list of file paths to search for configuration files.

    The search order is:
    1. Home directory (~/default_file)
    2. Git root directory (git_root/default_file) if git_root is provided
    3. Current directory (default_file)
    4. Command line specified file (command_line_file) if provided

    Later files take precedence when they are loaded in order.

    Args:
        default_file: The default filename to search for
        git_root: The git root directory (optional)
        command_line_file: A file specified on the command line (optional)

    Returns:
        List of resolved, de-duplicated file paths in search order
    """
    files = [Path.home() / default_file]
    if git_root:
        files.append(Path(git_root) / default_file)
    files.append(Path(default_file))
    if command_line_file:
        files.append(Path(command_line_file))

    resolved_files = []
    for fn in files:
        try:
            resolved_files.append(str(fn.expanduser().resolve()))
        except OSError:
            pass

    # keep the last occurrence of each path so precedence is preserved
    uniq = list(dict.fromkeys(reversed(resolved_files)))
    uniq.reverse()
    return uniq
