from typing import List

from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import (
    format_command_result,
    match_refs,
    parse_quoted_filenames,
    quote_filename,
)


class DropCommand(BaseCommand):
    NORM_NAME = "drop"
    DESCRIPTION = "Remove files or URLs from the context"
    TAKES_PATHS = True

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        conversation = chat.require_conversation()
        context = conversation.context
        literals = [ref.literal for ref in context.seen + context.unseen]

        if not args.strip():
            conversation.remove_context(literals)
            chat.save()
            io.tool_output("Dropping all context references.")
            return format_command_result(io, "drop", "Dropped all context")

        selected = []
        for word in parse_quoted_filenames(args):
            matched = match_refs(word, literals, chat.fetcher.root)
            if not matched:
                io.tool_warning(f"{word} is not in the context")
            selected.extend(matched)

        removed = conversation.remove_context(dict.fromkeys(selected))
        for ref in removed:
            io.tool_output(f"Removed {ref} from the context")
        if removed:
            chat.save()
        return format_command_result(io, "drop", f"Removed {len(removed)} context references")

    @classmethod
    def get_completions(cls, io, chat, args) -> List[str]:
        """Get completion options for drop command."""
        conversation = chat.conversation
        if conversation is None:
            return []
        refs = conversation.context.seen + conversation.context.unseen
        return [quote_filename(ref.literal) for ref in refs]

    @classmethod
    def get_help(cls) -> str:
        """Get help text for the drop command."""
        help_text = super().get_help()
        help_text += "\nUsage:\n"
        help_text += "  /drop [ref1] [ref2] ...  # Remove specific references\n"
        help_text += "  /drop                    # Remove all references\n"
        help_text += "\nExamples:\n"
        help_text += "  /drop main.py            # Remove main.py\n"
        help_text += '  /drop "*.py"             # Remove all Python files\n'
        help_text += "  /drop src                # Remove everything under src/\n"
        return help_text
