from unittest.mock import MagicMock

import pytest

from claippy.conversation import ArtifactSyntax
from claippy.exceptions import FetchError, TransportError
from claippy.store import ConversationStore


# Syntax Fixtures
@pytest.fixture
def short_syntax():
    """Compact marker convention, <M id="...">...</M>, used in segmenter tests."""
    return ArtifactSyntax(tag="M", identifier_attr="id", language_attr="lang")


# Store Fixtures
@pytest.fixture
def store(tmp_path):
    """Conversation store rooted in a per-test temporary directory."""
    return ConversationStore(tmp_path / ".claippy")


@pytest.fixture
def fake_fetch():
    """
    Factory fixture for a fetch callable backed by a dict.

    Missing references raise FetchError, like a missing file would.

    Example:
        def test_something(fake_fetch):
            fetch = fake_fetch({"a.py": "print(1)"})
    """

    def make(contents):
        def fetch(ref):
            try:
                return contents[ref.literal]
            except KeyError:
                raise FetchError(ref, "file not found") from None

        fetch.contents = contents
        return fetch

    return make


@pytest.fixture
def fake_model_class():
    """
    Factory fixture for a model whose stream yields canned chunks.

    If ``error`` is given it is raised after the chunks, simulating a
    connection that breaks off mid-response.

    Example:
        def test_something(fake_model_class):
            model = fake_model_class(["Hello ", "World"], error=TransportError("reset"))
    """

    class FakeModel:
        name = "fake-model"

        def __init__(self, chunks, error=None):
            self.chunks = list(chunks)
            self.error = error
            self.requests = []

        def __str__(self):
            return self.name

        async def stream(self, messages):
            self.requests.append(messages)
            for chunk in self.chunks:
                yield chunk
            if self.error is not None:
                raise self.error

    return FakeModel


@pytest.fixture
def transport_error():
    return TransportError("connection reset")


# Mock Streaming Fixtures
@pytest.fixture
def mock_delta_class():
    """
    Factory fixture for MockDelta class.

    Returns a class that can be instantiated to create mock delta objects
    for streaming responses.

    Example:
        def test_something(mock_delta_class):
            MockDelta = mock_delta_class
            delta = MockDelta(content="test content")
    """

    class MockDelta:
        def __init__(self, content=None, role=None):
            if content is not None:
                self.content = content
            if role is not None:
                self.role = role

    return MockDelta


@pytest.fixture
def mock_streaming_chunk_class(mock_delta_class):
    """
    Factory fixture for MockStreamingChunk class.

    Returns a class that can be instantiated to create mock streaming chunk objects.
    Depends on mock_delta_class fixture.

    Example:
        def test_something(mock_streaming_chunk_class):
            MockStreamingChunk = mock_streaming_chunk_class
            chunk = MockStreamingChunk(content="test", finish_reason="stop")
    """

    class MockStreamingChunk:
        def __init__(self, content=None, role=None, finish_reason=None):
            self.choices = [MagicMock()]
            self.choices[0].delta = mock_delta_class(content, role)
            self.choices[0].finish_reason = finish_reason

    return MockStreamingChunk


@pytest.fixture
def async_stream():
    """Wrap a list of chunks in an async iterator, like a litellm streaming response."""

    def make(chunks, error=None):
        async def iterate():
            for chunk in chunks:
                yield chunk
            if error is not None:
                raise error

        return iterate()

    return make
