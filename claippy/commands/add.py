from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import (
    format_command_result,
    parse_quoted_filenames,
    resolve_context_words,
)


class AddCommand(BaseCommand):
    NORM_NAME = "add"
    DESCRIPTION = "Add files or URLs to the context sent with the next message"
    TAKES_PATHS = True

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        """Execute the add command with given parameters."""
        words = parse_quoted_filenames(args)
        if not words:
            io.tool_error("Please provide files or URLs to add.")
            return format_command_result(io, "add", "No files or URLs provided")

        conversation = chat.require_conversation()
        refs, missing = resolve_context_words(words, chat.fetcher.root)
        for word in missing:
            io.tool_error(f"No files matched '{word}'")

        added = conversation.add_context(refs)
        added_literals = {ref.literal for ref in added}
        for ref in refs:
            if ref in added_literals:
                io.tool_output(f"Added {ref} to the context")
            else:
                io.tool_output(f"{ref} is already in the context")

        if added:
            chat.save()
        return format_command_result(io, "add", f"Added {len(added)} context references")

    @classmethod
    def get_help(cls) -> str:
        """Get help text for the add command."""
        help_text = super().get_help()
        help_text += "\nUsage:\n"
        help_text += "  /add <file|dir|glob|url> ...  # Queue context for the next message\n"
        help_text += "\nExamples:\n"
        help_text += "  /add src/main.py             # Add one file\n"
        help_text += '  /add "docs/**/*.md"          # Add files matching a glob\n'
        help_text += "  /add https://example.com     # Add a web page\n"
        help_text += "\nContext is sent once; /clear queues it to be sent again.\n"
        return help_text
