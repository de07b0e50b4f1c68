from abc import ABC, ABCMeta, abstractmethod
from typing import List

from claippy.exceptions import ClaippyError


class CommandMeta(ABCMeta):
    """Metaclass for validating command classes at definition time."""

    def __new__(mcs, name, bases, namespace):
        cls = super().__new__(mcs, name, bases, namespace)

        # Skip validation for BaseCommand itself
        if name == "BaseCommand":
            return cls

        if not name.endswith("Command"):
            raise TypeError(f"Command class must end with 'Command', got '{name}'")

        if getattr(cls, "NORM_NAME", None) is None:
            raise TypeError("Command class must define NORM_NAME")

        if getattr(cls, "DESCRIPTION", None) is None:
            raise TypeError("Command class must define DESCRIPTION")

        if "execute" not in namespace:
            raise TypeError("Command class must implement execute method")

        return cls


class BaseCommand(ABC, metaclass=CommandMeta):
    """Abstract base class for all commands."""

    NORM_NAME = None  # Normalized command name (e.g., "add", "clear")
    DESCRIPTION = None  # Command description for help
    TAKES_PATHS = False  # Arguments are file paths, offer path completion

    @classmethod
    @abstractmethod
    async def execute(cls, io, chat, args, **kwargs):
        """
        Execute the command with given parameters.

        Args:
            io: InputOutput instance
            chat: Chat instance holding the conversation, store and model
            args: Command arguments as string
            **kwargs: Additional context

        Returns:
            Optional result (most commands return a status string)
        """
        pass

    @classmethod
    def get_completions(cls, io, chat, args) -> List[str]:
        """
        Get completion options for this command.

        Args:
            io: InputOutput instance
            chat: Chat instance
            args: Partial arguments for completion

        Returns:
            List of completion strings
        """
        return []

    @classmethod
    async def process_command(cls, io, chat, args, **kwargs):
        """Run the command, reporting claippy errors instead of raising them."""
        try:
            return await cls.execute(io, chat, args, **kwargs)
        except ClaippyError as e:
            if kwargs.get("raise_errors"):
                raise
            return cls.handle_error(io, e)

    @classmethod
    def handle_error(cls, io, error):
        """Centralized error handling for commands."""
        io.tool_error(f"Error in command {cls.NORM_NAME}: {str(error)}")
        return None

    @classmethod
    def get_help(cls) -> str:
        """
        Get help text for this command.

        Returns:
            String containing help text for the command
        """
        help_text = f"Command: /{cls.NORM_NAME}\n"
        help_text += f"Description: {cls.DESCRIPTION}\n"
        return help_text
