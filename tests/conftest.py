import pytest
from unittest.mock import AsyncMock, Mock
from pickup_ops.core.models import Identity
from pickup_ops.services.auth_service import AuthService
from pickup_ops.services.document_store import InMemoryDocumentStore
from pickup_ops.services.live_query import LivePickupFeed
from pickup_ops.services.pickup_commands import PickupCommands
from pickup_ops.services.profile_service import ProfileService


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def provider():
    """Auth provider double; register/login return whatever identity the test configures"""
    provider = Mock()
    provider.register = AsyncMock(return_value=Identity(uid="new-user", email="new@example.com"))
    provider.login = AsyncMock(return_value=Identity(uid="cust-1", email="ana@example.com"))
    provider.logout = AsyncMock(return_value=None)
    provider.on_identity_change = Mock(return_value=Mock())
    return provider


@pytest.fixture
def auth(provider, store):
    return AuthService(provider, store)


@pytest.fixture
def profiles(store):
    return ProfileService(store)


@pytest.fixture
def feed(store):
    return LivePickupFeed(store)


@pytest.fixture
def commands(store):
    return PickupCommands(store)
