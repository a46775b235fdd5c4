"""Integration tests running the full chat loop against a scripted console.

The Ollama client is replaced by the FakeChatClient; everything else is
wired by create_app() exactly as in production.
"""

import json

import pytest

from chat_console import create_app
from chat_console.services import TokenEstimatorRegistry
from chat_console.sessions import AssistantMessage, SystemMessage, UserMessage


@pytest.fixture
def make_app(test_settings, make_console, fake_client, make_estimator):
    """Factory for a ChatApp reading the given lines."""

    def _make(*lines, settings=None):
        console = make_console(*lines)
        app = create_app(
            settings=settings or test_settings,
            console=console,
            client_factory=lambda host, model: fake_client,
            estimators=TokenEstimatorRegistry(default=make_estimator(count=3)),
        )
        return app, console

    return _make


@pytest.mark.asyncio
async def test_conversation_until_bye(make_app, fake_client):
    """Test a short interactive session ending with /bye."""
    app, console = make_app("Hi", "/stats", "/bye", "never read")
    fake_client.queue(["Hel", "lo!"])

    await app.run()

    assert app.state.cancellation_requested is True
    assert app.store.primary.messages == [
        SystemMessage(content="You are helpful."),
        UserMessage(content="Hi"),
        AssistantMessage(content="Hello!"),
    ]
    output = console.stdout.getvalue()
    assert output.startswith("Starting chat with Ollama compatible model: test-model")
    assert "Hello!" in output
    assert '"turn_count": 1' in output
    assert '"estimated_token_count": 3' in output
    assert "Exiting chat." in output
    assert len(fake_client.requests) == 1


@pytest.mark.asyncio
async def test_loop_ends_at_end_of_input(make_app, fake_client):
    app, console = make_app("Hi")
    fake_client.queue(["Hello!"])

    await app.run()

    assert app.state.cancellation_requested is True
    assert len(app.store.primary) == 3


@pytest.mark.asyncio
async def test_unreachable_server_only_warns(make_app, fake_client):
    """Test a failed connection check does not stop the chat."""
    fake_client.connected = False
    app, console = make_app("/bye")

    await app.run()

    output = console.stdout.getvalue()
    assert "Warning: Could not reach Ollama at http://localhost:11434" in output
    assert "Exiting chat." in output


@pytest.mark.asyncio
async def test_failed_turn_then_retry(make_app, fake_client):
    """Test a failed request can be retried without leftovers."""
    app, console = make_app("Hi", "Hi", "/bye")
    fake_client.queue(ConnectionError("Connection refused"), ["Hello!"])

    await app.run()

    assert [m.content for m in app.store.primary] == ["You are helpful.", "Hi", "Hello!"]
    assert fake_client.requests[1] == [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hi"},
    ]


@pytest.mark.asyncio
async def test_save_forget_load(make_app, fake_client, tmp_path):
    """Test a conversation survives a save, forget and load cycle."""
    target = tmp_path / "saved.json"
    app, console = make_app("Hi", f"/save {target}", "/forget", f"/load {target}", "/bye")
    fake_client.queue(["Hello!"])

    await app.run()

    assert json.loads(target.read_text(encoding="utf-8"))[-1] == {
        "role": "assistant",
        "content": "Hello!",
    }
    assert [m.content for m in app.store.primary] == ["You are helpful.", "Hi", "Hello!"]
    assert "Conversation history cleared." in console.stdout.getvalue()


@pytest.mark.asyncio
async def test_summarize_then_continue(make_app, fake_client):
    """Test that after compaction the next turn starts from the summary."""
    app, console = make_app("Hi", "/summarize", "Next", "/bye")
    fake_client.queue(["Hello!"], ["They greeted."], ["Sure."])

    await app.run()

    assert fake_client.requests[2] == [
        {
            "role": "system",
            "content": "You are helpful.\n\nSummary of the conversation so far:\nThey greeted.",
        },
        {"role": "user", "content": "Next"},
    ]


@pytest.mark.asyncio
async def test_autonomous_step_mode(make_app, fake_client):
    """Test entering autonomous mode, directing it and leaving it."""
    app, console = make_app(
        "/auto",
        "/direct Let's discuss tea",
        "",
        "/direct More about green tea",
        "/auto",
        "/bye",
    )
    fake_client.queue(["P1"], ["A1"], ["P2"], ["A2"], ["A3"])

    await app.run()

    assert app.state.autonomous_mode is False
    assert [m.content for m in app.store.primary] == [
        "You are helpful.",
        "Let's discuss tea",
        "P1",
        "A1",
        "P2",
        "A2",
        "A3",
    ]
    assert [m.content for m in app.store.agent] == [
        "You are curious.",
        "Let's discuss tea",
        "P1",
        "A1",
        "P2",
        "A2",
        "direction: More about green tea",
        "A3",
    ]
    assert len(fake_client.requests) == 5
    output = console.stdout.getvalue()
    assert "Activating autonomous mode." in output
    assert "Exiting autonomous mode." in output


@pytest.mark.asyncio
async def test_commands_in_step_prompt_skip_the_round(make_app, fake_client):
    """Test a slash-command at the step prompt runs without a round."""
    app, console = make_app("/auto", "/model other", "/bye")

    await app.run()

    assert app.state.model_name == "other"
    assert fake_client.requests == []
    assert app.store.is_fresh()


@pytest.mark.asyncio
async def test_autonomous_without_step_mode(test_settings, make_app, fake_client):
    """Test rounds run back to back without prompting until cancelled."""
    settings = test_settings.model_copy(update={"autonomous_mode": True, "step_mode": False})
    app, console = make_app(settings=settings)
    fake_client.queue(["P1"], ["A1"], ConnectionError("down"))

    async def stop_after_two_rounds(direction=None):
        await original(direction)
        if len(fake_client.requests) >= 3:
            app.state.request_cancellation()
        return True

    original = app.autonomous.run_round
    app.autonomous.run_round = stop_after_two_rounds

    await app.run()

    assert [m.content for m in app.store.primary] == ["You are helpful.", "Hello.", "P1"]
    assert "Could not connect to Ollama" in console.stdout.getvalue()


@pytest.mark.asyncio
async def test_forget_in_autonomous_mode_reseeds_both_sides(make_app, fake_client):
    """Test /forget at the step prompt starts a new dialogue on both sides."""
    app, console = make_app("/auto", "", "/forget", "/direct New topic", "/bye")
    fake_client.queue(["P1"], ["A1"], ["P2"], ["A2"])

    await app.run()

    assert [m.content for m in app.store.primary] == ["You are helpful.", "New topic", "P2", "A2"]
    assert [m.content for m in app.store.agent] == ["You are curious.", "New topic", "P2", "A2"]
