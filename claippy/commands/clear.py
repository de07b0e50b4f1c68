from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import format_command_result


class ClearCommand(BaseCommand):
    NORM_NAME = "clear"
    DESCRIPTION = "Clear the chat history"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        conversation = chat.require_conversation()
        conversation.clear()
        chat.save()

        io.tool_output("All chat history cleared.")
        if conversation.context.unseen:
            io.tool_output(
                f"{len(conversation.context.unseen)} context references will be sent again"
                " with the next message."
            )
        return format_command_result(io, "clear", "Cleared chat history")

    @classmethod
    def get_help(cls) -> str:
        """Get help text for the clear command."""
        help_text = super().get_help()
        help_text += "\nUsage:\n"
        help_text += "  /clear  # Clear all chat history\n"
        help_text += "\nNote: This only clears the chat history, not the context.\n"
        help_text += "Context already sent is queued to be sent again. Use /drop to remove it.\n"
        return help_text
