from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import format_command_result
from claippy.conversation import Conversation


class NewCommand(BaseCommand):
    NORM_NAME = "new"
    DESCRIPTION = "Start a new conversation and make it the current one"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        conversation_id = Conversation.create_id(args)
        chat.conversation = chat.store.create(conversation_id)
        io.tool_output(f"Created conversation {conversation_id}")
        return format_command_result(io, "new", f"Created conversation {conversation_id}")

    @classmethod
    def get_help(cls) -> str:
        help_text = super().get_help()
        help_text += "\nUsage:\n"
        help_text += "  /new [description]  # e.g. /new fix login bug\n"
        help_text += "\nThe id is the description followed by a timestamp.\n"
        return help_text
