import json
import logging
import os
import re
from pathlib import Path
from typing import List, Optional

import git

from claippy.conversation import Conversation
from claippy.exceptions import ConversationNotFound, StoreError

logger = logging.getLogger(__name__)

STORE_DIRNAME = ".claippy"
CURRENT_FILENAME = "current"


def get_git_root(path=None) -> Optional[str]:
    """Working tree of the git repo containing ``path`` (default: cwd), if any."""
    try:
        repo = git.Repo(path or Path.cwd(), search_parent_directories=True)
        return repo.working_tree_dir
    except (git.InvalidGitRepositoryError, git.NoSuchPathError, FileNotFoundError):
        return None


class ConversationStore:
    """
    JSON files, one per conversation, plus a pointer to the current one.

    Layout::

        <root>/.claippy/conversations/<id>.json
        <root>/.claippy/current
    """

    def __init__(self, path, encoding="utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    @classmethod
    def for_workspace(cls, cwd=None, store_dir=None, encoding="utf-8") -> "ConversationStore":
        if store_dir:
            return cls(Path(store_dir).expanduser(), encoding=encoding)
        root = get_git_root(cwd) or str(cwd or Path.cwd())
        return cls(Path(root) / STORE_DIRNAME, encoding=encoding)

    @property
    def conversations_dir(self) -> Path:
        return self.path / "conversations"

    def _file_for(self, conversation_id: str) -> Path:
        safe_name = re.sub("[^a-zA-Z0-9_.-]", "_", conversation_id)
        return self.conversations_dir / f"{safe_name}.json"

    def exists(self, conversation_id: str) -> bool:
        return self._file_for(conversation_id).is_file()

    def create(self, conversation_id: str) -> Conversation:
        """Create, persist and activate an empty conversation."""
        if self.exists(conversation_id):
            raise StoreError(f"Conversation {conversation_id} already exists")
        conversation = Conversation.create(conversation_id)
        self.save(conversation)
        self.set_current(conversation_id)
        return conversation

    def save(self, conversation: Conversation) -> Path:
        target = self._file_for(conversation.id)
        tmp = target.with_suffix(".json.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding=self.encoding) as f:
                json.dump(conversation.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp, target)
        except OSError as err:
            raise StoreError(f"Error saving conversation {conversation.id}: {err}") from err
        logger.debug("Saved %s to %s", conversation.id, target)
        return target

    def load(self, conversation_id: str) -> Conversation:
        source = self._file_for(conversation_id)
        try:
            with open(source, "r", encoding=self.encoding) as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConversationNotFound(conversation_id) from None
        except (OSError, json.JSONDecodeError) as err:
            raise StoreError(f"Error reading conversation {conversation_id}: {err}") from err
        try:
            return Conversation.from_dict(data)
        except (KeyError, TypeError, ValueError) as err:
            raise StoreError(f"Corrupt conversation file {source}: {err}") from err

    def list_ids(self) -> List[str]:
        """Conversation ids, oldest first for a given descriptor."""
        if not self.conversations_dir.is_dir():
            return []
        return sorted(f.stem for f in self.conversations_dir.glob("*.json") if f.is_file())

    def get_current_id(self) -> Optional[str]:
        try:
            current = (self.path / CURRENT_FILENAME).read_text(encoding=self.encoding).strip()
        except FileNotFoundError:
            return None
        except OSError as err:
            raise StoreError(f"Error reading current conversation: {err}") from err
        return current or None

    def set_current(self, conversation_id: str) -> None:
        if not self.exists(conversation_id):
            raise ConversationNotFound(conversation_id)
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            current = self.path / CURRENT_FILENAME
            current.write_text(conversation_id + "\n", encoding=self.encoding)
        except OSError as err:
            raise StoreError(f"Error activating conversation {conversation_id}: {err}") from err

    def load_current(self) -> Conversation:
        """The active conversation; raises ConversationNotFound if there is none."""
        conversation_id = self.get_current_id()
        if not conversation_id:
            raise ConversationNotFound(None)
        return self.load(conversation_id)
