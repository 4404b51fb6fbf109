from functools import lru_cache

from fastapi import Depends

from ..services import AccountStore, AccountUpdateNotifier, CommandDispatcher, CommandHandler
from .config import get_settings


@lru_cache()
def get_account_store() -> AccountStore:
    return AccountStore()


@lru_cache()
def get_notifier() -> AccountUpdateNotifier:
    return AccountUpdateNotifier()


def get_dispatcher(
    store: AccountStore = Depends(get_account_store),
    notifier: AccountUpdateNotifier = Depends(get_notifier),
) -> CommandDispatcher:
    return CommandDispatcher(store, notifier)


def get_command_handler(
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> CommandHandler:
    return CommandHandler(dispatcher, max_payload_bytes=get_settings().max_payload_bytes)
