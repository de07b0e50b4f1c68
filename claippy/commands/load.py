from typing import List

from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import format_command_result
from claippy.exceptions import ConversationNotFound


class LoadCommand(BaseCommand):
    NORM_NAME = "load"
    DESCRIPTION = "Switch to a saved conversation"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        name = args.strip()
        if not name:
            io.tool_error("Please provide a conversation id to load.")
            return format_command_result(io, "load", "No conversation id provided")

        conversation_id = cls.resolve_id(chat.store, name)
        conversation = chat.store.load(conversation_id)
        chat.store.set_current(conversation_id)
        chat.conversation = conversation

        io.tool_output(
            f"Loaded conversation {conversation_id} ({len(conversation.turns)} turns,"
            f" {len(conversation.context)} context references)"
        )
        return format_command_result(io, "load", f"Loaded conversation {conversation_id}")

    @staticmethod
    def resolve_id(store, name):
        """Exact id, or the newest id starting with ``name``."""
        ids = store.list_ids()
        if name in ids:
            return name
        matches = [i for i in ids if i.startswith(name)]
        if not matches:
            raise ConversationNotFound(name)
        return matches[-1]

    @classmethod
    def get_completions(cls, io, chat, args) -> List[str]:
        return chat.store.list_ids()
