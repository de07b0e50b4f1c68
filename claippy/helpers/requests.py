def remove_empty_messages(messages):
    """Drop messages whose content is empty or only whitespace.

    Args:
        messages: List of message dictionaries

    Returns:
        List of messages that carry content
    """
    return [msg for msg in messages if (msg.get("content") or "").strip()]


def merge_consecutive_roles(messages, separator="\n\n"):
    """Join runs of messages from the same role into one message.

    Providers reject two user (or assistant) messages in a row, which
    happens when an interrupted response left an empty assistant turn.

    Args:
        messages: List of message dictionaries
        separator: Text placed between merged contents

    Returns:
        List of messages with strictly alternating roles
    """
    merged = []
    for msg in messages:
        if merged and merged[-1]["role"] == msg["role"]:
            content = merged[-1]["content"] + separator + msg["content"]
            merged[-1] = dict(merged[-1], content=content)
        else:
            merged.append(dict(msg))
    return merged


def drop_trailing_assistant(messages):
    """A request must end with a user message."""
    while messages and messages[-1]["role"] == "assistant":
        messages = messages[:-1]
    return messages


def model_request_parser(messages):
    messages = remove_empty_messages(messages)
    messages = merge_consecutive_roles(messages)
    messages = drop_trailing_assistant(messages)
    return messages
