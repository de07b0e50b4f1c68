import argparse

import configargparse
import shtab

from claippy import __version__
from claippy.conversation import DEFAULT_SYNTAX
from claippy.models import DEFAULT_MAX_TOKENS, DEFAULT_MODEL_NAME

COMMAND_ALIASES = {
    "n": "new",
    "a": "add",
    "q": "query",
    "d": "drop",
    "ls": "list",
}
COMMAND_CHOICES = ["new", "add", "drop", "query", "clear", "context", "list", "load", "repl"]


def resolve_command(name):
    """Canonical command name for a command line alias."""
    if name is None:
        return "repl"
    return COMMAND_ALIASES.get(name, name)


def get_parser(default_config_files, git_root):
    parser = configargparse.ArgumentParser(
        description="claippy is a coding assistant for your terminal",
        add_config_file_help=True,
        default_config_files=default_config_files,
        config_file_parser_class=configargparse.YAMLConfigFileParser,
        auto_env_var_prefix="CLAIPPY_",
    )

    ##########
    group = parser.add_argument_group("Command")
    group.add_argument(
        "command",
        nargs="?",
        metavar="COMMAND",
        choices=COMMAND_CHOICES + list(COMMAND_ALIASES),
        help=(
            "One of: new (n), add (a), drop (d), query (q), clear, context, list (ls), load."
            " Starts the interactive prompt when omitted"
        ),
    )
    group.add_argument(
        "words",
        nargs="*",
        metavar="ARG",
        help="Arguments for the command: a description, files/URLs, or the message",
    ).complete = shtab.FILE

    ##########
    group = parser.add_argument_group("Model settings")
    group.add_argument(
        "--model",
        metavar="MODEL",
        default=DEFAULT_MODEL_NAME,
        help=f"Model to use, in litellm's provider/model form (default: {DEFAULT_MODEL_NAME})",
    )
    group.add_argument(
        "--system-prompt",
        metavar="TEXT",
        default=None,
        help="Replace the built-in system prompt",
    )
    group.add_argument(
        "--temperature",
        type=float,
        default=0.0,
        help="Sampling temperature (default: 0.0)",
    )
    group.add_argument(
        "--max-tokens",
        type=int,
        default=DEFAULT_MAX_TOKENS,
        help=f"Maximum tokens in each response (default: {DEFAULT_MAX_TOKENS})",
    )
    group.add_argument(
        "--aws-region",
        metavar="REGION",
        default=None,
        help="AWS region for Bedrock models",
    )
    group.add_argument(
        "--aws-profile",
        metavar="PROFILE",
        default=None,
        help="AWS credentials profile for Bedrock models",
    )
    group.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for API calls (default: None)",
    )
    group.add_argument(
        "--verify-ssl",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Verify the SSL cert when fetching URLs and calling models (default: True)",
    )

    ##########
    group = parser.add_argument_group("Artifact markers")
    group.add_argument(
        "--artifact-tag",
        metavar="TAG",
        default=DEFAULT_SYNTAX.tag,
        help=f"Tag name of artifact markers (default: {DEFAULT_SYNTAX.tag})",
    )
    group.add_argument(
        "--artifact-identifier-attr",
        metavar="ATTR",
        default=DEFAULT_SYNTAX.identifier_attr,
        help=f"Attribute holding the artifact id (default: {DEFAULT_SYNTAX.identifier_attr})",
    )
    group.add_argument(
        "--artifact-language-attr",
        metavar="ATTR",
        default=DEFAULT_SYNTAX.language_attr,
        help=f"Attribute holding the artifact language (default: {DEFAULT_SYNTAX.language_attr})",
    )

    ##########
    group = parser.add_argument_group("Storage settings")
    group.add_argument(
        "--store-dir",
        metavar="STORE_DIR",
        default=None,
        help="Directory for saved conversations (default: .claippy in the git root)",
    ).complete = shtab.DIRECTORY
    group.add_argument(
        "--input-history-file",
        metavar="INPUT_HISTORY_FILE",
        default=None,
        help="Specify the prompt input history file (default: input.history in the store dir)",
    ).complete = shtab.FILE

    ##########
    group = parser.add_argument_group("Output settings")
    group.add_argument(
        "--pretty",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Enable/disable pretty, colorized output (default: True)",
    )
    group.add_argument(
        "--fancy-input",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Enable/disable fancy input with history and completion (default: True)",
    )
    group.add_argument(
        "--user-input-color",
        default="#00cc00",
        help="Set the color for user input (default: #00cc00)",
    )
    group.add_argument(
        "--tool-output-color",
        default=None,
        help="Set the color for tool output (default: None)",
    )
    group.add_argument(
        "--tool-error-color",
        default="#FF2222",
        help="Set the color for tool error messages (default: #FF2222)",
    )
    group.add_argument(
        "--tool-warning-color",
        default="#FFA500",
        help="Set the color for tool warning messages (default: #FFA500)",
    )
    group.add_argument(
        "--assistant-output-color",
        default="#0088ff",
        help="Set the color for assistant output (default: #0088ff)",
    )
    group.add_argument(
        "--code-theme",
        default="default",
        help=(
            "Set the markdown code theme (default: default, other options include monokai,"
            " solarized-dark, solarized-light, or a Pygments builtin style,"
            " see https://pygments.org/styles for available themes)"
        ),
    )

    ##########
    group = parser.add_argument_group("Other settings")
    group.add_argument(
        "-c",
        "--config",
        is_config_file=True,
        metavar="CONFIG_FILE",
        help=(
            "Specify the config file (default: search for .claippy.conf.yml in git root, cwd"
            " or home directory)"
        ),
    ).complete = shtab.FILE
    group.add_argument(
        "--env-file",
        metavar="ENV_FILE",
        default=None,
        help="Specify the .env file to load (default: .env in git root)",
    ).complete = shtab.FILE
    group.add_argument(
        "--encoding",
        default="utf-8",
        help="Specify the encoding for input and output (default: utf-8)",
    )
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
        default=False,
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Write debug logs to .claippy/logs/debug.log",
        default=False,
    )
    group.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show the version number and exit",
    )
    group.add_argument(
        "--shell-completions",
        metavar="SHELL",
        choices=shtab.SUPPORTED_SHELLS,
        help="Print shell completion script for the specified SHELL and exit",
    )

    return parser
