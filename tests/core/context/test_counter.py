"""Tests for TokenCounter implementations: TiktokenCounter and EstimatingCounter."""

import pytest

from ctxpilot.core.context.counter import (
    _IMAGE_TOKENS,
    _MSG_OVERHEAD,
    _REPLY_PRIMING,
    EstimatingCounter,
    TiktokenCounter,
    TokenCounter,
)
from ctxpilot.core.interface.models import (
    ConversationHistory,
    ImageBlock,
    Message,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)


class TestProtocolConformance:
    def test_tiktoken_is_token_counter(self) -> None:
        counter = TiktokenCounter("gpt-4o")
        assert isinstance(counter, TokenCounter)

    def test_estimating_is_token_counter(self) -> None:
        counter = EstimatingCounter()
        assert isinstance(counter, TokenCounter)


class TestTiktokenCounter:
    @pytest.fixture
    def counter(self) -> TiktokenCounter:
        return TiktokenCounter("gpt-4o")

    def test_count_message_text(self, counter: TiktokenCounter) -> None:
        msg = Message.user("Hello world")
        count = counter.count_message(msg)
        assert count > _MSG_OVERHEAD
        assert count == counter.count_message(msg)  # stable

    def test_count_message_empty(self, counter: TiktokenCounter) -> None:
        assert counter.count_message(Message(role="user", content="")) == _MSG_OVERHEAD

    def test_tool_use_counted(self, counter: TiktokenCounter) -> None:
        with_tool = Message(
            role="assistant",
            content=[ToolUseBlock(id="abc", name="execute_command", input={"command": "ls -la"})],
        )
        assert counter.count_message(with_tool) > _MSG_OVERHEAD

    def test_count_messages_includes_priming(self, counter: TiktokenCounter) -> None:
        history = ConversationHistory(messages=[Message.user("Hi")])
        total = counter.count_messages(history)
        single = counter.count_message(Message.user("Hi"))
        assert total == single + _REPLY_PRIMING

    def test_unknown_model_falls_back(self) -> None:
        counter = TiktokenCounter("totally-unknown-model")
        assert counter.count_text("hello") > 0


class TestEstimatingCounter:
    @pytest.fixture
    def counter(self) -> EstimatingCounter:
        return EstimatingCounter()

    def test_count_text(self, counter: EstimatingCounter) -> None:
        assert counter.count_text("a" * 40) == 10

    def test_plain_and_block_content_agree(self, counter: EstimatingCounter) -> None:
        plain = Message(role="user", content="a" * 40)
        blocks = Message(role="user", content=[TextBlock(text="a" * 40)])
        assert counter.count_message(plain) == counter.count_message(blocks) == _MSG_OVERHEAD + 10

    def test_tool_result_counted(self, counter: EstimatingCounter) -> None:
        msg = Message(
            role="user",
            content=[ToolResultBlock(tool_use_id="t", content=[TextBlock(text="b" * 80)])],
        )
        assert counter.count_message(msg) == _MSG_OVERHEAD + 20

    def test_image_flat_charge(self, counter: EstimatingCounter) -> None:
        msg = Message(role="user", content=[ImageBlock(url="https://x/y.png")])
        assert counter.count_message(msg) == _MSG_OVERHEAD + _IMAGE_TOKENS

    def test_count_messages(self, counter: EstimatingCounter) -> None:
        messages = [Message.user("a" * 8), Message.assistant("b" * 4)]
        assert counter.count_messages(messages) == (_MSG_OVERHEAD + 2) + (_MSG_OVERHEAD + 1) + _REPLY_PRIMING
