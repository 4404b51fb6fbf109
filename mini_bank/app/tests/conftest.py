import pytest
from fastapi.testclient import TestClient

from ..core.dependencies import get_account_store, get_notifier
from ..main import app
from ..services import AccountStore, AccountUpdateNotifier, CommandDispatcher, CommandHandler


@pytest.fixture
def store() -> AccountStore:
    return AccountStore()


@pytest.fixture
def notifier() -> AccountUpdateNotifier:
    return AccountUpdateNotifier()


@pytest.fixture
def dispatcher(store: AccountStore, notifier: AccountUpdateNotifier) -> CommandDispatcher:
    return CommandDispatcher(store, notifier)


@pytest.fixture
def handler(dispatcher: CommandDispatcher) -> CommandHandler:
    return CommandHandler(dispatcher, max_payload_bytes=4096)


@pytest.fixture
def client(store: AccountStore, notifier: AccountUpdateNotifier) -> TestClient:
    app.dependency_overrides[get_account_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
