"""Unit tests for the interactive round engine."""

import httpx
import ollama
import pytest

from chat_console.commands import ChatCommands, build_command_registry
from chat_console.engine import RoundEngine
from chat_console.ollama import ChatClientRegistry
from chat_console.services import StatsComputer, SummaryCompactor, TokenEstimatorRegistry
from chat_console.sessions import AssistantMessage, ConversationHistory, SystemMessage, UserMessage


@pytest.fixture
def make_engine(store, state, clients, make_estimator):
    """Factory for a RoundEngine reading from the given console."""

    def _make(console) -> RoundEngine:
        handlers = ChatCommands(
            store=store,
            state=state,
            clients=clients,
            stats=StatsComputer(TokenEstimatorRegistry(default=make_estimator())),
            compactor=SummaryCompactor(store),
            console=console,
        )
        return RoundEngine(store, state, clients, build_command_registry(handlers), console)

    return _make


@pytest.mark.asyncio
async def test_round_streams_reply(make_engine, make_console, store, fake_client):
    """Test a user line is answered and both messages are recorded."""
    console = make_console("Hi")
    fake_client.queue(["Hel", "lo!"])
    engine = make_engine(console)

    assert await engine.run_round() is True

    assert store.primary.messages == [
        SystemMessage(content="You are helpful."),
        UserMessage(content="Hi"),
        AssistantMessage(content="Hello!"),
    ]
    assert fake_client.requests[0] == [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hi"},
    ]
    output = console.stdout.getvalue()
    assert "You:\n" in output
    assert "test-model:\nHello!\n" in output
    assert output.rstrip().endswith("-" * 52)


@pytest.mark.asyncio
async def test_round_sends_full_history(make_engine, make_console, store, fake_client):
    """Test that each request carries every earlier message in order."""
    console = make_console("one", "two")
    fake_client.queue(["first"], ["second"])
    engine = make_engine(console)

    await engine.run_round()
    await engine.run_round()

    assert [m["content"] for m in fake_client.requests[1]] == [
        "You are helpful.",
        "one",
        "first",
        "two",
    ]
    assert len(store.primary) == 5


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        ConnectionError("Connection refused"),
        httpx.ConnectError("Connection refused"),
        ollama.ResponseError("model 'test-model' not found", 404),
        ["Partial ", "reply", RuntimeError("stream broke")],
    ],
)
async def test_failed_round_leaves_no_trace(make_engine, make_console, store, fake_client, reply):
    """Test that a failed request rolls the user message back."""
    store.primary.add_user("earlier")
    store.primary.add_assistant("answer")
    before = ConversationHistory(store.primary.messages)
    console = make_console("Hi")
    fake_client.queue(reply)
    engine = make_engine(console)

    assert await engine.run_round() is True

    assert store.primary == before
    output = console.stdout.getvalue()
    assert "Error:" in output
    assert "Your last message was not sent due to the error. Please try again." in output


@pytest.mark.asyncio
async def test_connection_error_names_host(make_engine, make_console, fake_client):
    """Test connection failures mention the endpoint."""
    console = make_console("Hi")
    fake_client.queue(httpx.ConnectError("Connection refused"))

    await make_engine(console).run_round()

    assert "Could not connect to Ollama at http://localhost:11434" in console.stdout.getvalue()


@pytest.mark.asyncio
async def test_model_not_found_suggests_pull(make_engine, make_console, fake_client):
    """Test a 404 from Ollama suggests pulling the model."""
    console = make_console("Hi")
    fake_client.queue(ollama.ResponseError("model 'test-model' not found", 404))

    await make_engine(console).run_round()

    assert "ollama pull test-model" in console.stdout.getvalue()


@pytest.mark.asyncio
async def test_blank_line_is_ignored(make_engine, make_console, store, state, fake_client):
    """Test that an empty line neither sends nor changes history."""
    console = make_console("   ")
    engine = make_engine(console)

    assert await engine.run_round() is True

    assert fake_client.requests == []
    assert store.primary == ConversationHistory.seeded("You are helpful.")
    assert state.cancellation_requested is False


@pytest.mark.asyncio
async def test_end_of_input_requests_cancellation(make_engine, make_console, state, fake_client):
    """Test that EOF on stdin stops the loop."""
    engine = make_engine(make_console())

    assert await engine.run_round() is True

    assert state.cancellation_requested is True
    assert fake_client.requests == []


@pytest.mark.asyncio
async def test_commands_are_not_sent(make_engine, make_console, store, state, fake_client):
    """Test that a slash line goes to the command table, not the model."""
    console = make_console("/model other-model", "/bye")
    engine = make_engine(console)

    await engine.run_round()
    await engine.run_round()

    assert fake_client.requests == []
    assert state.model_name == "other-model"
    assert state.cancellation_requested is True
    assert len(store.primary) == 1


@pytest.mark.asyncio
async def test_model_switch_routes_to_new_client(store, state, make_console, make_fake_client, make_estimator):
    """Test that after /model the next request goes to the new model's client."""
    built = {}

    def factory(host, model):
        built[model] = make_fake_client(host=host, model=model)
        return built[model]

    clients = ChatClientRegistry(host="http://localhost:11434", client_factory=factory)
    clients.get_or_create(state.model_name)
    console = make_console("/model other-model", "Hi")
    handlers = ChatCommands(
        store=store,
        state=state,
        clients=clients,
        stats=StatsComputer(TokenEstimatorRegistry(default=make_estimator())),
        compactor=SummaryCompactor(store),
        console=console,
    )
    engine = RoundEngine(store, state, clients, build_command_registry(handlers), console)

    await engine.run_round()
    built["other-model"].queue(["From the other model."])
    await engine.run_round()

    assert built["test-model"].requests == []
    assert len(built["other-model"].requests) == 1
    assert store.primary.last() == AssistantMessage(content="From the other model.")
