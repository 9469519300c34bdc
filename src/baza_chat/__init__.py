"""
baza-chat — BazaAI chat client for Python.

Offline-tolerant message delivery for the BazaAI conversational backend:
optimistic timeline, durable resend queue, connectivity-driven drains.
"""

from baza_chat.client import AsyncBazaChat, BazaChat
from baza_chat.config import ClientConfig
from baza_chat.connectivity import ConnectivityMonitor, ConnectivitySignal
from baza_chat.errors import BazaChatError, OfflineError, ServerError, StorageError, TransportError
from baza_chat.models.message import Message, MessageStatus, PurchaseOption, Role
from baza_chat.pipeline import ChatPipeline
from baza_chat.queue import DurableQueue

__version__ = "0.1.0"
__all__ = [
    "AsyncBazaChat",
    "BazaChat",
    "ClientConfig",
    "ChatPipeline",
    "ConnectivityMonitor",
    "ConnectivitySignal",
    "DurableQueue",
    "Message",
    "MessageStatus",
    "PurchaseOption",
    "Role",
    "BazaChatError",
    "TransportError",
    "ServerError",
    "OfflineError",
    "StorageError",
]
